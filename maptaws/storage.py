"""S3 bucket, ECS cluster and IAM role lookups."""

from __future__ import annotations

from maptaws.clients import AwsClients

S3_PREFIX = "s3://"
S3_PATH_SEPARATOR = "/"
DEFAULT_AWS_REGION = "us-east-1"


class ClusterNotFoundError(LookupError):
    """No ECS cluster with the requested name exists."""

    def __init__(self, message: str = "cluster not found") -> None:
        super().__init__(message)


def validate_s3_path(path: str) -> bool:
    """True when ``path`` is an ``s3://`` URI."""
    return path.startswith(S3_PREFIX)


def bucket_from_s3_path(path: str) -> str:
    """Bucket name from an ``s3://bucket/key`` path."""
    if not validate_s3_path(path):
        raise ValueError("this is not a valid s3 path")
    return path[len(S3_PREFIX):].split(S3_PATH_SEPARATOR)[0]


def get_bucket_location(clients: AwsClients, bucket_name: str) -> str:
    """Region holding ``bucket_name``."""
    try:
        response = clients.s3().get_bucket_location(Bucket=bucket_name)
    except Exception as err:
        raise RuntimeError(f"failed to retrieve bucket region: {err}") from err
    # Buckets in us-east-1 report no location constraint.
    return response.get("LocationConstraint") or DEFAULT_AWS_REGION


def get_bucket_location_from_s3_path(clients: AwsClients, path: str) -> str:
    """Region holding the bucket named in an ``s3://`` path."""
    return get_bucket_location(clients, bucket_from_s3_path(path))


def get_cluster(clients: AwsClients, cluster_name: str, region: str) -> str:
    """ARN of the ECS cluster called ``cluster_name`` in ``region``."""
    ecs = clients.ecs(region or None)
    listed = ecs.list_clusters()
    arns = (listed or {}).get("clusterArns") or []
    if not arns:
        raise ClusterNotFoundError()
    described = ecs.describe_clusters(clusters=arns)
    for cluster in described.get("clusters", []):
        if cluster.get("clusterName") == cluster_name:
            return cluster["clusterArn"]
    raise ClusterNotFoundError()


def get_role(clients: AwsClients, role_name: str) -> str:
    """ARN of the IAM role called ``role_name``."""
    return clients.iam().get_role(RoleName=role_name)["Role"]["Arn"]