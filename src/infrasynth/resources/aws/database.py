# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Managed database and cache kinds."""

from __future__ import annotations

from infrasynth.errors import ValidationError
from infrasynth.resources.aws._common import identifier_list, tags_field
from infrasynth.schema import BOOLEAN, INTEGER, STRING, Attributes, attribute, define, requires
from infrasynth.synthesis.resource import resource_kind

# ###############
# Public Interface
# ###############

DB_ENGINES = ("mysql", "postgres", "mariadb")
DB_INSTANCE_CLASS_PATTERN = r"^db\.[a-z0-9]+\.[a-z0-9]+$"
CACHE_NODE_TYPE_PATTERN = r"^cache\.[a-z0-9]+\.[a-z0-9]+$"

DEFAULT_PORTS = {"mysql": 3306, "mariadb": 3306, "postgres": 5432, "redis": 6379, "memcached": 11211}

_NAME = r"^[a-z][a-z0-9-]{0,62}$"

aws_db_subnet_group = resource_kind(
    "aws_db_subnet_group",
    define(
        "DbSubnetGroupAttributes",
        {
            "name": attribute(STRING, pattern=_NAME),
            "description": attribute(STRING, default="Managed by InfraSynth"),
            "subnet_ids": identifier_list(min_length=1),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "arn", "name"),
)


def _multi_az_needs_subnet_group(attrs: Attributes) -> None:
    if attrs.multi_az and not attrs.db_subnet_group_name:
        raise ValidationError("db_subnet_group_name", "required when multi_az is enabled")


def _final_snapshot_named(attrs: Attributes) -> None:
    if not attrs.skip_final_snapshot and not attrs.final_snapshot_identifier:
        raise ValidationError("final_snapshot_identifier", "required unless skip_final_snapshot is set")


DB_INSTANCE = define(
    "DbInstanceAttributes",
    {
        "identifier": attribute(STRING, pattern=_NAME),
        "engine": attribute(STRING, choices=DB_ENGINES),
        "engine_version": attribute(STRING, optional=True),
        "instance_class": attribute(STRING, pattern=DB_INSTANCE_CLASS_PATTERN),
        "allocated_storage": attribute(INTEGER, default=20, ge=20, le=65536),
        "storage_encrypted": attribute(BOOLEAN, default=False),
        "multi_az": attribute(BOOLEAN, default=False),
        "port": attribute(INTEGER, optional=True, ge=1150, le=65535),
        "username": attribute(STRING, default="admin", pattern=r"^[A-Za-z][A-Za-z0-9_]{0,15}$"),
        "manage_master_user_password": attribute(BOOLEAN, default=True),
        "db_subnet_group_name": attribute(STRING, optional=True),
        "vpc_security_group_ids": identifier_list(),
        "backup_retention_period": attribute(INTEGER, default=7, ge=0, le=35),
        "skip_final_snapshot": attribute(BOOLEAN, default=True),
        "final_snapshot_identifier": attribute(STRING, optional=True),
        "tags": tags_field(),
    },
    validators=[_multi_az_needs_subnet_group, _final_snapshot_named],
)

aws_db_instance = resource_kind(
    "aws_db_instance",
    DB_INSTANCE,
    outputs=("id", "arn", "endpoint", "address", "port"),
    computed={
        "effective_port": lambda attrs: attrs.port or DEFAULT_PORTS[attrs.engine],
        "is_backed_up": lambda attrs: attrs.backup_retention_period > 0,
    },
)

aws_elasticache_subnet_group = resource_kind(
    "aws_elasticache_subnet_group",
    define(
        "ElastiCacheSubnetGroupAttributes",
        {
            "name": attribute(STRING, pattern=_NAME),
            "subnet_ids": identifier_list(min_length=1),
            "tags": tags_field(),
        },
    ),
    outputs=("id", "name"),
)

aws_elasticache_cluster = resource_kind(
    "aws_elasticache_cluster",
    define(
        "ElastiCacheClusterAttributes",
        {
            "cluster_id": attribute(STRING, pattern=r"^[a-z][a-z0-9-]{0,39}$"),
            "engine": attribute(STRING, default="redis", choices=["redis", "memcached"]),
            "node_type": attribute(STRING, pattern=CACHE_NODE_TYPE_PATTERN),
            "num_cache_nodes": attribute(INTEGER, default=1, ge=1, le=40),
            "port": attribute(INTEGER, optional=True, ge=1, le=65535),
            "parameter_group_name": attribute(STRING, optional=True),
            "subnet_group_name": attribute(STRING, optional=True),
            "security_group_ids": identifier_list(),
            "tags": tags_field(),
        },
        validators=[requires("security_group_ids", "subnet_group_name")],
    ),
    outputs=("id", "arn", "cache_nodes[0].address", "configuration_endpoint"),
    computed={"effective_port": lambda attrs: attrs.port or DEFAULT_PORTS[attrs.engine]},
)
