# Copyright 2026 InfraSynth Contributors
# SPDX-License-Identifier: Apache-2.0

"""Relational database components: ``mysql_database`` and ``postgresql_database``.

Both declare a subnet group over private subnets, a security group admitting
the database port from the allowed security groups only, and the instance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from infrasynth.compose import AggregateReference, Composer
from infrasynth.registry import components
from infrasynth.resources.aws._common import identifier_field, identifier_list, tags_field
from infrasynth.resources.aws.database import DB_INSTANCE_CLASS_PATTERN, DEFAULT_PORTS
from infrasynth.resources.aws.naming import name_tags, resource_name
from infrasynth.resources.aws.network import ALLOW_ALL_EGRESS
from infrasynth.schema import BOOLEAN, INTEGER, STRING, attribute, define
from infrasynth.synthesis.context import SynthesisContext

# ###############
# Public Interface
# ###############

RELATIONAL_DATABASE = define(
    "RelationalDatabaseAttributes",
    {
        "vpc_id": identifier_field(),
        "subnet_ids": identifier_list(min_length=1),
        "allowed_security_group_ids": identifier_list(),
        "engine_version": attribute(STRING, optional=True),
        "instance_class": attribute(STRING, default="db.t3.micro", pattern=DB_INSTANCE_CLASS_PATTERN),
        "allocated_storage": attribute(INTEGER, default=20, ge=20, le=65536),
        "storage_encrypted": attribute(BOOLEAN, default=False),
        "backup_retention_days": attribute(INTEGER, default=7, ge=0, le=35),
        "multi_az": attribute(BOOLEAN, default=False),
        "tags": tags_field(),
    },
)


def relational_database(engine: str) -> Callable[[SynthesisContext, str, Mapping[str, Any]], AggregateReference]:
    """Return a component builder for the database *engine* (``mysql`` or ``postgres``)."""
    port = DEFAULT_PORTS[engine]

    def build(context: SynthesisContext, name: str, attributes: Mapping[str, Any]) -> AggregateReference:
        composer = Composer(context, f"{engine}_database", name)
        attrs = composer.merge_attributes(RELATIONAL_DATABASE, attributes)
        identifier = resource_name(name, limit=63)

        subnet_group = composer.declare(
            "subnet_group",
            "aws_db_subnet_group",
            {
                "name": identifier,
                "subnet_ids": list(attrs.subnet_ids),
                "tags": name_tags(attrs.tags, identifier),
            },
        )
        ingress = [
            {
                "from_port": port,
                "to_port": port,
                "security_groups": list(attrs.allowed_security_group_ids),
                "description": f"{engine} clients",
            }
        ]
        security_group = composer.declare(
            "security_group",
            "aws_security_group",
            {
                "name": f"{identifier}-db",
                "description": f"{engine} access",
                "vpc_id": attrs.vpc_id,
                "ingress": ingress if attrs.allowed_security_group_ids else [],
                "egress": [ALLOW_ALL_EGRESS],
                "tags": name_tags(attrs.tags, f"{identifier}-db"),
            },
        )
        instance_attrs: dict[str, Any] = {
            "identifier": identifier,
            "engine": engine,
            "instance_class": attrs.instance_class,
            "allocated_storage": attrs.allocated_storage,
            "storage_encrypted": attrs.storage_encrypted,
            "multi_az": attrs.multi_az,
            "port": port,
            "db_subnet_group_name": subnet_group["name"],
            "vpc_security_group_ids": [security_group.id],
            "backup_retention_period": attrs.backup_retention_days,
            "tags": name_tags(attrs.tags, identifier),
        }
        if attrs.engine_version is not None:
            instance_attrs["engine_version"] = attrs.engine_version
        instance = composer.declare("instance", "aws_db_instance", instance_attrs)

        composer.output("endpoint", instance["endpoint"])
        composer.output("address", instance["address"])
        composer.output("port", port)
        composer.output("instance_id", instance.id)
        composer.output("security_group_id", security_group.id)

        composer.computed("engine", lambda aggregate: engine)
        composer.computed("encrypted", lambda aggregate: aggregate.attributes.storage_encrypted)
        composer.computed("multi_az", lambda aggregate: aggregate.attributes.multi_az)
        return composer.finish()

    build.__name__ = f"{engine}_database"
    build.__doc__ = f"Declare a {engine} instance in private subnets."
    return build


mysql_database = components.register("mysql_database", relational_database("mysql"))
postgresql_database = components.register("postgresql_database", relational_database("postgres"))
