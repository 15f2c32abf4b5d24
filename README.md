# maptaws

Helpers that answer the questions you need answered before provisioning AWS
machines for testing: which regions are open, which availability zones a
region has, where an AMI is published, where spot capacity is cheapest and
most likely to last, which Mac dedicated hosts exist for a pool, how to lay
out a VPC's subnets, and how to express a delayed one-time schedule.

The package has no runtime dependencies. Every AWS call goes through an
`AwsClients` object (`maptaws.clients`). You give it a factory that receives
a service name (`"ec2"`, `"ecs"`, `"iam"` or `"s3"`) and a region (or `None`
for the default region) and returns a client with boto-style methods such as
`describe_regions(Filters=...)`. Clients are created on first use and cached
per service and region, so you can back them with any SDK or with test
doubles.

## Install

```
pip install maptaws
```

For running the tests:

```
pip install "maptaws[test]"
pytest
```

## What is inside

- `maptaws.clients` – `AwsClients` with `ec2(region)`, `ecs(region)`,
  `iam()` and `s3()`, and `all_tags_matches(tags, resource_tags)`, which is
  true when every key/value pair is among a resource's `Key`/`Value` tags.
- `maptaws.timezone` – `region_timezone(region)`: the IANA time zone of a
  region, or `None` when it is unknown.
- `maptaws.regions` – `get_regions`: regions that do not require opt-in.
- `maptaws.azs` – `describe_availability_zones`, `get_availability_zones`
  (an empty list when the lookup fails), `get_random_availability_zone`
  (optionally excluding zones; `LookupError` when none is left),
  `get_zone_name` to map a zone id to this account's zone name, and
  `describe_availability_zones_by_regions`.
- `maptaws.ami` – `get_ami`, `is_ami_offered` and `find_ami` using an
  `ImageRequest`; the newest image wins, and `NoAmiError` is raised when
  none matches. `find_ami` searches all regions concurrently and returns the
  first hit as an `ImageInfo`.
- `maptaws.storage` – `validate_s3_path`, `bucket_from_s3_path`,
  `get_bucket_location` and `get_bucket_location_from_s3_path` (an empty
  location means `us-east-1`), `get_cluster` (raises
  `ClusterNotFoundError`) and `get_role`.
- `maptaws.instance_types` – whether an instance type is offered in a region
  or availability zone, the subset of types a region offers, and
  `lookup_region_offering_instance_type`.
- `maptaws.hosts` – `DedicatedHostRequest`, `get_dedicated_host`,
  `get_dedicated_hosts` (all regions), `get_dedicated_hosts_by_region` and
  `get_instances_by_region`, filtering by id and tags.
- `maptaws.subnets` – `get_random_public_subnet` in a region's default VPC,
  with `get_public_subnets` and `is_public`; raises `NoDefaultVpcError`
  and `NoRouteTableError`.
- `maptaws.spot` – `spot_info` crosses spot placement scores (score 3 and
  above) with the last hour of spot prices across all regions and returns
  the `SpotInfoResult` with the lowest max price, skipping regions where the
  requested AMI is not offered. The pieces are available on their own:
  `placement_scores`, `spot_pricing`, `select_spot_choice`,
  `run_by_region` and `product_description`.
- `maptaws.mac` – `HostInformation` composed from a host's tags
  (`host_information`, `tag_value`), `PoolID.as_tags`,
  `matching_hosts_information` and `pool_dedicated_hosts_information`
  (oldest allocation first), `backed_url_for_run`, and `select_region` /
  `select_az` for Mac instance types (`x86`, `m1`, `m2`).
- `maptaws.network_layout` – `generate_public_subnet_cidrs`,
  `generate_private_subnet_cidrs`, `generate_intra_subnet_cidrs`,
  `NetworkRequest` with `validate` (`ValueError` when a subnet kind has more
  CIDR blocks than zones) and `nat_gateway_required`, `select_nat_gateway`,
  `default_network_request` and the `Connectivity` phases of an airgap
  network.
- `maptaws.schedule` – `parse_duration` (`"1h30m"`, `"1.5h"`, `"-90s"`),
  `one_time_schedule_expression` in the region's local time,
  `schedule_expression` for `ScheduleType.REPEAT` (`rate(...)`) and
  `ScheduleType.ONE_TIME` (`at(...)`), `check_backed_url_for_serverless`
  (raises `InvalidBackedURLError` for `file:///` URLs), and the IAM policy
  documents for the task and scheduler roles.
- `maptaws.allocation` – `AllocationData`, `allocation_data_on_demand`
  (region from the argument or `AWS_DEFAULT_REGION`, random zone) and
  `spot_price_bid`, which raises a price by a percentage.

## Example

```python
from datetime import datetime, timezone

from maptaws.network_layout import generate_public_subnet_cidrs
from maptaws.schedule import (
    ScheduleType,
    one_time_schedule_expression,
    parse_duration,
    schedule_expression,
)

generate_public_subnet_cidrs(3)
# ['10.0.1.0/24', '10.0.2.0/24', '10.0.3.0/24']

schedule_expression(ScheduleType.REPEAT, "1 hour")
# 'rate(1 hour)'

parse_duration("1h30m")
# datetime.timedelta(seconds=5400)

one_time_schedule_expression(
    "us-east-1", "2h", now=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
)
# '2024-01-15T09:00:00'
```

## What it does not do

The package only looks things up and plans. It does not create, update or
destroy any AWS resource: it builds no VPCs, subnets, load balancers, dedicated
hosts, AMI copies, ECS tasks or schedules, and keeps no deployment state.
There is no command-line tool, and no AWS SDK is bundled; you supply the
clients through `AwsClients`.