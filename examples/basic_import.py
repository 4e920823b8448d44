"""Plan imports from a fixture remote.

Shows how to fetch existing objects, generate configuration for them and
inspect the bindings that were recorded.
"""

import asyncio
import tempfile
from pathlib import Path

from importwright import BindingLedger, ImportPlanner, ImportRequest, RemoteStateFetcher, load_registry
from importwright.adapters.fixture import FixtureClient

remote = FixtureClient(
    resources={
        "aws_s3_bucket": [
            {
                "id": "acme-logs",
                "bucket": "acme-logs",
                "arn": "arn:aws:s3:::acme-logs",
                "region": "us-east-1",
                "tags": {"Team": "platform"},
                "versioning": [{"enabled": True, "mfa_delete": False}],
            }
        ],
        "aws_db_instance": [
            {
                "id": "orders-db",
                "identifier": "orders-db",
                "engine": "postgres",
                "instance_class": "db.r5.large",
                "password": "s3cr3t",
            }
        ],
    }
)

registry = load_registry()
ledger = BindingLedger(Path(tempfile.mkdtemp()) / "ledger.jsonl")
planner = ImportPlanner(registry, RemoteStateFetcher(remote), ledger)

requests = [
    ImportRequest(address="aws_s3_bucket.logs", external_id="acme-logs"),
    ImportRequest(address="aws_db_instance.orders", external_id="orders-db"),
    ImportRequest(address="aws_s3_bucket.missing", external_id="no-such-bucket"),
]
report = asyncio.run(planner.plan_many(requests))

# Generated configuration (sensitive values become variables)
print(report.to_hcl())

for failure in report.failures:
    print(f"[FAIL] {failure.address}: {failure.message}")

print("--- Bindings ---")
for binding in ledger.bindings():
    print(f"  {binding.address} -> {binding.external_id}")
