"""
Read-only AWS queries via boto3.

STS (account identity), CloudControl (generic resources), CloudFormation
(stacks), CloudWatch Logs (log groups) and S3 (buckets). Every function
returns an envelope; SDK errors never propagate.
"""

import json
import logging
import re

import boto3
from botocore.exceptions import NoCredentialsError

from assistant.config import get_settings
from assistant.envelope import error_message, fail, is_credential_error, ok

logger = logging.getLogger(__name__)

AWS_ACTIONS = (
    "list_resources",
    "get_resource",
    "list_stacks",
    "describe_stack",
    "describe_stack_resources",
    "list_log_groups",
    "list_s3_buckets",
)

STACK_STATUS_FILTER = [
    "CREATE_COMPLETE",
    "UPDATE_COMPLETE",
    "DELETE_FAILED",
    "CREATE_FAILED",
    "ROLLBACK_COMPLETE",
    "UPDATE_ROLLBACK_COMPLETE",
]

MAX_RESULTS = 50

_RE_ASSUMED_ROLE = re.compile(r"assumed-role/([^/]+)")
_RE_IAM_USER = re.compile(r"user/(.+)$")


def _resolve_region(region: str | None) -> str:
    return region or get_settings().aws_region


def create_aws_client(
    service: str,
    region: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    session_token: str | None = None,
):
    """Create a boto3 client. Explicit keys are used only when both id and secret are given."""
    kwargs = {"region_name": _resolve_region(region)}
    if access_key_id and secret_access_key:
        kwargs.update(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            aws_session_token=session_token,
        )
    return boto3.client(service, **kwargs)


# ────────────── Account identity (STS) ──────────────

def get_account_info(region: str | None = None, **credentials) -> dict:
    """STS GetCallerIdentity for the current credentials."""
    region = _resolve_region(region)
    try:
        sts = create_aws_client("sts", region, **credentials)
        response = sts.get_caller_identity()
        return ok(
            "get_account_info",
            accountId=response.get("Account"),
            arn=response.get("Arn"),
            userId=response.get("UserId"),
            region=region,
        )
    except Exception as e:
        message = error_message(e)
        logger.warning("[aws] GetCallerIdentity failed: %s", message)
        return fail(
            "get_account_info",
            message,
            isCredentialError=isinstance(e, NoCredentialsError) or is_credential_error(message),
            region=region,
        )


def format_account_id(account_id: str) -> str:
    """Mask a 12-digit account id as 1234****9012."""
    if len(account_id) == 12:
        return f"{account_id[:4]}****{account_id[-4:]}"
    return account_id


def extract_role_info(arn: str | None) -> dict | None:
    """Derive {type, name} from an STS/IAM ARN."""
    if not arn:
        return None
    match = _RE_ASSUMED_ROLE.search(arn)
    if match:
        return {"type": "Role", "name": match.group(1)}
    match = _RE_IAM_USER.search(arn)
    if match:
        return {"type": "User", "name": match.group(1)}
    if ":root" in arn:
        return {"type": "Root", "name": "Root User"}
    return None


# ────────────── Resource queries ──────────────

def _parse_properties(raw: str | None):
    return json.loads(raw) if raw else None


def _list_resources(resource_type: str, region: str) -> dict:
    cloud_control = create_aws_client("cloudcontrol", region)
    response = cloud_control.list_resources(TypeName=resource_type, MaxResults=MAX_RESULTS)
    descriptions = response.get("ResourceDescriptions") or []
    return ok(
        "list_resources",
        resourceType=resource_type,
        count=len(descriptions),
        resources=[
            {"identifier": d.get("Identifier"), "properties": _parse_properties(d.get("Properties"))}
            for d in descriptions
        ],
    )


def _get_resource(resource_type: str, identifier: str, region: str) -> dict:
    cloud_control = create_aws_client("cloudcontrol", region)
    response = cloud_control.get_resource(TypeName=resource_type, Identifier=identifier)
    description = response.get("ResourceDescription") or {}
    return ok(
        "get_resource",
        resourceType=resource_type,
        identifier=identifier,
        resource={
            "identifier": description.get("Identifier"),
            "properties": _parse_properties(description.get("Properties")),
        },
    )


def _list_stacks(region: str) -> dict:
    cloudformation = create_aws_client("cloudformation", region)
    response = cloudformation.list_stacks(StackStatusFilter=STACK_STATUS_FILTER)
    summaries = response.get("StackSummaries") or []
    return ok(
        "list_stacks",
        count=len(summaries),
        stacks=[
            {
                "stackName": s.get("StackName"),
                "stackStatus": s.get("StackStatus"),
                "creationTime": s.get("CreationTime"),
                "lastUpdatedTime": s.get("LastUpdatedTime"),
                "templateDescription": s.get("TemplateDescription"),
            }
            for s in summaries
        ],
    )


def _describe_stack(stack_name: str, region: str) -> dict:
    cloudformation = create_aws_client("cloudformation", region)
    response = cloudformation.describe_stacks(StackName=stack_name)
    stacks = response.get("Stacks") or []
    stack = stacks[0] if stacks else None
    return ok(
        "describe_stack",
        stackName=stack_name,
        stack={
            "stackName": stack.get("StackName"),
            "stackStatus": stack.get("StackStatus"),
            "creationTime": stack.get("CreationTime"),
            "lastUpdatedTime": stack.get("LastUpdatedTime"),
            "description": stack.get("Description"),
            "parameters": stack.get("Parameters"),
            "outputs": stack.get("Outputs"),
            "tags": stack.get("Tags"),
            "capabilities": stack.get("Capabilities"),
        } if stack else None,
    )


def _describe_stack_resources(stack_name: str, region: str) -> dict:
    cloudformation = create_aws_client("cloudformation", region)
    response = cloudformation.describe_stack_resources(StackName=stack_name)
    resources = response.get("StackResources") or []
    return ok(
        "describe_stack_resources",
        stackName=stack_name,
        count=len(resources),
        resources=[
            {
                "logicalResourceId": r.get("LogicalResourceId"),
                "physicalResourceId": r.get("PhysicalResourceId"),
                "resourceType": r.get("ResourceType"),
                "resourceStatus": r.get("ResourceStatus"),
                "resourceStatusReason": r.get("ResourceStatusReason"),
                "timestamp": r.get("Timestamp"),
                "description": r.get("Description"),
            }
            for r in resources
        ],
    )


def _list_log_groups(region: str) -> dict:
    logs = create_aws_client("logs", region)
    response = logs.describe_log_groups(limit=MAX_RESULTS)
    groups = response.get("logGroups") or []
    return ok(
        "list_log_groups",
        count=len(groups),
        logGroups=[
            {
                "logGroupName": g.get("logGroupName"),
                "creationTime": g.get("creationTime"),
                "retentionInDays": g.get("retentionInDays"),
                "storedBytes": g.get("storedBytes"),
                "arn": g.get("arn"),
                "metricFilterCount": g.get("metricFilterCount"),
            }
            for g in groups
        ],
    )


def _bucket_region(s3, bucket_name: str) -> str:
    try:
        location = s3.get_bucket_location(Bucket=bucket_name)
    except Exception as e:
        logger.info("[aws] GetBucketLocation failed for %s: %s", bucket_name, e)
        return "unknown"
    # us-east-1 buckets report an empty constraint
    return location.get("LocationConstraint") or "us-east-1"


def _list_s3_buckets(region: str) -> dict:
    s3 = create_aws_client("s3", region)
    response = s3.list_buckets()
    buckets = [
        {
            "bucketName": b.get("Name"),
            "creationDate": b.get("CreationDate"),
            "region": _bucket_region(s3, b.get("Name")),
        }
        for b in response.get("Buckets") or []
    ]
    return ok("list_s3_buckets", count=len(buckets), buckets=buckets)


def query_resources(
    action: str,
    resource_type: str | None = None,
    resource_identifier: str | None = None,
    stack_name: str | None = None,
    region: str | None = None,
) -> dict:
    """Run one read-only AWS query and return its envelope."""
    region = _resolve_region(region)
    try:
        if action == "list_resources":
            if not resource_type:
                raise ValueError("resourceType is required for list_resources action")
            return _list_resources(resource_type, region)

        if action == "get_resource":
            if not resource_type or not resource_identifier:
                raise ValueError(
                    "Both resourceType and resourceIdentifier are required for get_resource action"
                )
            return _get_resource(resource_type, resource_identifier, region)

        if action == "list_stacks":
            return _list_stacks(region)

        if action == "describe_stack":
            if not stack_name:
                raise ValueError("stackName is required for describe_stack action")
            return _describe_stack(stack_name, region)

        if action == "describe_stack_resources":
            if not stack_name:
                raise ValueError("stackName is required for describe_stack_resources action")
            return _describe_stack_resources(stack_name, region)

        if action == "list_log_groups":
            return _list_log_groups(region)

        if action == "list_s3_buckets":
            return _list_s3_buckets(region)

        raise ValueError(f"Unsupported action: {action}")

    except Exception as e:
        message = error_message(e)
        logger.warning("[aws] %s failed: %s", action, message)
        return fail(
            action,
            message,
            resourceType=resource_type,
            resourceIdentifier=resource_identifier,
            stackName=stack_name,
        )
