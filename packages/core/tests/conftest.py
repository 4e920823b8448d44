"""Shared fixtures for core tests."""

from __future__ import annotations

import pytest
from importwright.adapters.fixture import FixtureClient
from importwright.config import ImportSettings
from importwright.fetcher import RemoteStateFetcher
from importwright.ledger import BindingLedger
from importwright.planner import ImportPlanner
from importwright.registry import SchemaRegistry, load_registry


@pytest.fixture
def registry() -> SchemaRegistry:
    """The bundled sample catalog."""
    return load_registry()


@pytest.fixture
def fast_settings() -> ImportSettings:
    """Settings with zero backoff so retry tests do not sleep."""
    return ImportSettings(max_attempts=3, backoff_multiplier=0, backoff_max=0, timeout_seconds=1.0)


@pytest.fixture
def bucket_attrs() -> dict:
    return {
        "id": "logs",
        "bucket": "logs",
        "arn": "arn:aws:s3:::logs",
        "bucket_domain_name": "logs.s3.amazonaws.com",
        "force_destroy": False,
        "region": "us-east-1",
        "tags": {"Team": "platform", "Name": "logs"},
        "versioning": [{"enabled": True, "mfa_delete": False}],
        "acceleration_status": "",
    }


@pytest.fixture
def security_group_attrs() -> dict:
    return {
        "id": "sg-0123",
        "name": "web",
        "description": "Web tier",
        "vpc_id": "vpc-1",
        "ingress": [
            {"from_port": 443, "to_port": 443, "protocol": "tcp", "cidr_blocks": ["0.0.0.0/0"]},
            {"from_port": "80", "to_port": "80", "protocol": "tcp", "cidr_blocks": ["10.0.0.0/8"]},
        ],
        "egress": [],
        "tags": None,
    }


@pytest.fixture
def db_attrs() -> dict:
    return {
        "id": "orders-db",
        "identifier": "orders-db",
        "engine": "postgres",
        "engine_version": "15.4",
        "instance_class": "db.r5.large",
        "allocated_storage": 100,
        "multi_az": True,
        "storage_encrypted": "true",
        "username": "admin",
        "password": "hunter2",
        "endpoint": "orders-db.abc.us-east-1.rds.amazonaws.com:5432",
    }


@pytest.fixture
def client(bucket_attrs, security_group_attrs, db_attrs) -> FixtureClient:
    return FixtureClient(
        resources={
            "aws_s3_bucket": [bucket_attrs],
            "aws_security_group": [security_group_attrs],
            "aws_db_instance": [db_attrs],
        }
    )


@pytest.fixture
def make_planner(registry, fast_settings):
    """Factory: build a planner over a client, with an optional ledger."""

    def _make(client, ledger: BindingLedger | None = None, settings: ImportSettings | None = None) -> ImportPlanner:
        s = settings or fast_settings
        return ImportPlanner(
            registry,
            RemoteStateFetcher(client, s),
            ledger or BindingLedger(shards=s.lock_shards),
            settings=s,
        )

    return _make
