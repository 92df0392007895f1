"""boto3 client construction shared by the AWS adapters."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config

from doc_retrieval.config import Settings, settings as default_settings


def boto_config(settings: Settings = default_settings) -> Config:
    """Client config with the configured region and timeouts, no SDK retries.

    Retries belong to whoever re-invokes the pipelines; a timeout surfaces
    as an ordinary per-item failure.
    """
    return Config(
        region_name=settings.aws_region,
        connect_timeout=settings.aws_connect_timeout,
        read_timeout=settings.aws_read_timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )


def client(service_name: str, settings: Settings = default_settings) -> Any:
    return boto3.client(service_name, config=boto_config(settings))


def resource(service_name: str, settings: Settings = default_settings) -> Any:
    return boto3.resource(service_name, config=boto_config(settings))
