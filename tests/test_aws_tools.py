import json
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from assistant import aws_tools
from assistant.aws_tools import extract_role_info, format_account_id


class FakeBoto3:
    """Stands in for the boto3 module: client(service) returns a registered fake."""

    def __init__(self, clients):
        self.clients = clients
        self.calls = []

    def client(self, service, **kwargs):
        self.calls.append((service, kwargs))
        return self.clients[service]


class FakeSTS:
    def __init__(self, error=None):
        self.error = error

    def get_caller_identity(self):
        if self.error:
            raise self.error
        return {
            "Account": "123456789012",
            "Arn": "arn:aws:sts::123456789012:assumed-role/Admin/session",
            "UserId": "AROAEXAMPLE:session",
        }


class FakeCloudControl:
    def __init__(self):
        self.kwargs = None

    def list_resources(self, **kwargs):
        self.kwargs = kwargs
        return {"ResourceDescriptions": [
            {"Identifier": "i-1", "Properties": json.dumps({"InstanceType": "t3.micro"})},
            {"Identifier": "i-2", "Properties": None},
        ]}

    def get_resource(self, **kwargs):
        return {"ResourceDescription": {"Identifier": kwargs["Identifier"], "Properties": '{"a": 1}'}}


class FakeCloudFormation:
    def __init__(self, stacks=None):
        self.stacks = stacks
        self.filter = None

    def list_stacks(self, StackStatusFilter):
        self.filter = StackStatusFilter
        return {"StackSummaries": [{
            "StackName": "app",
            "StackStatus": "CREATE_COMPLETE",
            "CreationTime": datetime(2024, 1, 1, tzinfo=timezone.utc),
        }]}

    def describe_stacks(self, StackName):
        return {"Stacks": self.stacks if self.stacks is not None else [
            {"StackName": StackName, "StackStatus": "UPDATE_COMPLETE", "Outputs": [{"OutputKey": "Url"}]},
        ]}

    def describe_stack_resources(self, StackName):
        return {"StackResources": [{
            "LogicalResourceId": "Bucket",
            "PhysicalResourceId": "app-bucket",
            "ResourceType": "AWS::S3::Bucket",
            "ResourceStatus": "CREATE_COMPLETE",
        }]}


class FakeLogs:
    def describe_log_groups(self, limit):
        assert limit == aws_tools.MAX_RESULTS
        return {"logGroups": [{"logGroupName": "/aws/lambda/fn", "storedBytes": 2048}]}


class FakeS3:
    def list_buckets(self):
        return {"Buckets": [{"Name": "east"}, {"Name": "west"}, {"Name": "locked"}]}

    def get_bucket_location(self, Bucket):
        if Bucket == "east":
            return {"LocationConstraint": None}
        if Bucket == "west":
            return {"LocationConstraint": "us-west-2"}
        raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetBucketLocation")


@pytest.fixture
def fake_boto3(monkeypatch):
    fake = FakeBoto3({
        "sts": FakeSTS(),
        "cloudcontrol": FakeCloudControl(),
        "cloudformation": FakeCloudFormation(),
        "logs": FakeLogs(),
        "s3": FakeS3(),
    })
    monkeypatch.setattr(aws_tools, "boto3", fake)
    return fake


def test_get_account_info(fake_boto3):
    env = aws_tools.get_account_info("eu-west-1")
    assert env["success"] is True
    assert env["action"] == "get_account_info"
    assert env["accountId"] == "123456789012"
    assert env["region"] == "eu-west-1"
    assert fake_boto3.calls[0] == ("sts", {"region_name": "eu-west-1"})


def test_get_account_info_credentials_error(fake_boto3):
    fake_boto3.clients["sts"] = FakeSTS(NoCredentialsError())
    env = aws_tools.get_account_info()
    assert env["success"] is False
    assert env["isCredentialError"] is True
    assert env["region"] == "us-east-1"


def test_get_account_info_other_error(fake_boto3):
    fake_boto3.clients["sts"] = FakeSTS(RuntimeError("Rate exceeded"))
    env = aws_tools.get_account_info()
    assert env["isCredentialError"] is False
    assert env["error"] == "Rate exceeded"


def test_explicit_keys_passed_only_in_pairs(fake_boto3):
    aws_tools.create_aws_client("s3", "us-east-1", access_key_id="AKIA")
    assert fake_boto3.calls[-1] == ("s3", {"region_name": "us-east-1"})
    aws_tools.create_aws_client("s3", "us-east-1", access_key_id="AKIA", secret_access_key="s")
    assert fake_boto3.calls[-1][1]["aws_access_key_id"] == "AKIA"


def test_list_resources(fake_boto3):
    env = aws_tools.query_resources("list_resources", resource_type="AWS::EC2::Instance")
    assert env["count"] == 2
    assert env["resources"][0] == {"identifier": "i-1", "properties": {"InstanceType": "t3.micro"}}
    assert env["resources"][1]["properties"] is None
    assert fake_boto3.clients["cloudcontrol"].kwargs == {"TypeName": "AWS::EC2::Instance", "MaxResults": 50}


def test_get_resource(fake_boto3):
    env = aws_tools.query_resources("get_resource", resource_type="AWS::S3::Bucket", resource_identifier="b")
    assert env["resource"] == {"identifier": "b", "properties": {"a": 1}}


def test_list_stacks_uses_status_filter(fake_boto3):
    env = aws_tools.query_resources("list_stacks")
    assert env["stacks"][0]["stackName"] == "app"
    assert fake_boto3.clients["cloudformation"].filter == aws_tools.STACK_STATUS_FILTER


def test_describe_stack(fake_boto3):
    env = aws_tools.query_resources("describe_stack", stack_name="app")
    assert env["stack"]["stackStatus"] == "UPDATE_COMPLETE"
    assert env["stack"]["outputs"] == [{"OutputKey": "Url"}]


def test_describe_stack_missing(fake_boto3):
    fake_boto3.clients["cloudformation"] = FakeCloudFormation(stacks=[])
    env = aws_tools.query_resources("describe_stack", stack_name="gone")
    assert env["success"] is True
    assert env["stack"] is None


def test_describe_stack_resources(fake_boto3):
    env = aws_tools.query_resources("describe_stack_resources", stack_name="app")
    assert env["count"] == 1
    assert env["resources"][0]["physicalResourceId"] == "app-bucket"


def test_list_log_groups(fake_boto3):
    env = aws_tools.query_resources("list_log_groups")
    assert env["logGroups"][0]["logGroupName"] == "/aws/lambda/fn"


def test_list_s3_buckets_region_fallbacks(fake_boto3):
    env = aws_tools.query_resources("list_s3_buckets")
    regions = {b["bucketName"]: b["region"] for b in env["buckets"]}
    assert regions == {"east": "us-east-1", "west": "us-west-2", "locked": "unknown"}


@pytest.mark.parametrize("action, kwargs, message", [
    ("list_resources", {}, "resourceType is required for list_resources action"),
    ("get_resource", {"resource_type": "AWS::S3::Bucket"},
     "Both resourceType and resourceIdentifier are required for get_resource action"),
    ("describe_stack", {}, "stackName is required for describe_stack action"),
    ("describe_stack_resources", {}, "stackName is required for describe_stack_resources action"),
    ("delete_everything", {}, "Unsupported action: delete_everything"),
])
def test_required_arguments(fake_boto3, action, kwargs, message):
    env = aws_tools.query_resources(action, **kwargs)
    assert env["success"] is False
    assert env["action"] == action
    assert env["error"] == message


def test_sdk_error_becomes_envelope(fake_boto3):
    class Broken:
        def list_stacks(self, **kwargs):
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "nope"}}, "ListStacks")

    fake_boto3.clients["cloudformation"] = Broken()
    env = aws_tools.query_resources("list_stacks")
    assert env["success"] is False
    assert "AccessDenied" in env["error"]


def test_format_account_id():
    assert format_account_id("123456789012") == "1234****9012"
    assert format_account_id("short") == "short"


def test_extract_role_info():
    assert extract_role_info("arn:aws:sts::1:assumed-role/Admin/me") == {"type": "Role", "name": "Admin"}
    assert extract_role_info("arn:aws:iam::1:user/dev/alice") == {"type": "User", "name": "dev/alice"}
    assert extract_role_info("arn:aws:iam::1:root") == {"type": "Root", "name": "Root User"}
    assert extract_role_info("arn:aws:iam::1:group/x") is None
    assert extract_role_info(None) is None
