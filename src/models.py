"""
Table models - declared configuration and observed remote state.

Declared configuration uses snake_case field names. The remote API speaks
camelCase JSON; the expand_* / flatten_* helpers translate between the two.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from errors import InvalidConfigError, InvalidNameError
from identifiers import create_resource_id, validate_name_format
from validation import validate_schema_definition

MAX_DEFAULT_TIME_TO_LIVE = 630720000  # 20 years, in seconds

# Changing any of these forces the table to be replaced
IMMUTABLE_FIELDS: Tuple[str, ...] = (
    "keyspace_name",
    "table_name",
    "schema_definition",
    "comment",
)

# Settings that can be changed in place, applied one per update call in this order
MUTABLE_FIELDS: Tuple[str, ...] = (
    "capacity_specification",
    "encryption_specification",
    "point_in_time_recovery",
    "ttl_enabled",
    "default_time_to_live",
)


class TableStatus(str, Enum):
    """Status of a table as reported by the remote API."""

    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    UPDATING = "UPDATING"
    DELETING = "DELETING"
    DELETED = "DELETED"


class ThroughputMode(str, Enum):
    PAY_PER_REQUEST = "PAY_PER_REQUEST"
    PROVISIONED = "PROVISIONED"


class EncryptionType(str, Enum):
    AWS_OWNED_KMS_KEY = "AWS_OWNED_KMS_KEY"
    CUSTOMER_MANAGED_KMS_KEY = "CUSTOMER_MANAGED_KMS_KEY"


class CapacitySpecification(BaseModel):
    """Read/write throughput settings."""

    throughput_mode: ThroughputMode = ThroughputMode.PAY_PER_REQUEST
    read_capacity_units: Optional[int] = Field(None, ge=1)
    write_capacity_units: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_units(self) -> "CapacitySpecification":
        if self.throughput_mode == ThroughputMode.PROVISIONED and (
            self.read_capacity_units is None or self.write_capacity_units is None
        ):
            raise ValueError(
                "PROVISIONED throughput requires read_capacity_units "
                "and write_capacity_units"
            )
        return self


class EncryptionSpecification(BaseModel):
    """Encryption at rest settings."""

    type: EncryptionType = EncryptionType.AWS_OWNED_KMS_KEY
    kms_key_identifier: Optional[str] = None

    @model_validator(mode="after")
    def check_key(self) -> "EncryptionSpecification":
        if (
            self.type == EncryptionType.CUSTOMER_MANAGED_KMS_KEY
            and not self.kms_key_identifier
        ):
            raise ValueError("CUSTOMER_MANAGED_KMS_KEY requires kms_key_identifier")
        return self


class TableConfig(BaseModel):
    """Declared configuration of a Keyspaces table."""

    keyspace_name: str = Field(..., description="Parent keyspace name")
    table_name: str = Field(..., description="Table name")
    schema_definition: Optional[Dict[str, Any]] = Field(
        None, description="Columns, partition keys, clustering keys, static columns"
    )
    comment: Optional[str] = None
    capacity_specification: Optional[CapacitySpecification] = None
    encryption_specification: Optional[EncryptionSpecification] = None
    point_in_time_recovery: Optional[bool] = None
    ttl_enabled: Optional[bool] = None
    default_time_to_live: Optional[int] = Field(
        None, ge=0, le=MAX_DEFAULT_TIME_TO_LIVE
    )
    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("keyspace_name", "table_name")
    @classmethod
    def validate_name(cls, v: str, info) -> str:
        try:
            return validate_name_format(v, info.field_name)
        except InvalidNameError as e:
            raise ValueError(e.message)

    @field_validator("schema_definition")
    @classmethod
    def validate_schema(
        cls, v: Optional[Dict[str, Any]]
    ) -> Optional[Dict[str, Any]]:
        if v is not None:
            is_valid, error = validate_schema_definition(v)
            if not is_valid:
                raise ValueError(error)
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableConfig":
        """
        Build a config from plain data.

        Raises:
            InvalidConfigError: If the data fails validation.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigError(f"invalid table configuration: {e}") from e

    @property
    def resource_id(self) -> str:
        return create_resource_id(self.keyspace_name, self.table_name)

    def changed_fields(self, other: "TableConfig") -> List[str]:
        """Names of fields whose value differs between self and other."""
        return [
            name
            for name in IMMUTABLE_FIELDS + MUTABLE_FIELDS + ("tags",)
            if getattr(self, name) != getattr(other, name)
        ]


class TableState(BaseModel):
    """Observed state of a table, as read back from the remote API."""

    arn: str
    keyspace_name: str
    table_name: str
    status: str = ""
    creation_timestamp: Optional[datetime] = None
    schema_definition: Optional[Dict[str, Any]] = None
    comment: Optional[str] = None
    capacity_specification: Optional[CapacitySpecification] = None
    encryption_specification: Optional[EncryptionSpecification] = None
    point_in_time_recovery: bool = False
    ttl_enabled: bool = False
    default_time_to_live: Optional[int] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    tags_all: Dict[str, str] = Field(default_factory=dict)

    @property
    def resource_id(self) -> str:
        return create_resource_id(self.keyspace_name, self.table_name)

    @classmethod
    def from_api(cls, output: Dict[str, Any]) -> "TableState":
        """Build a state object from a GetTable response body."""
        capacity = output.get("capacitySpecification")
        encryption = output.get("encryptionSpecification")
        return cls(
            arn=output.get("resourceArn", ""),
            keyspace_name=output["keyspaceName"],
            table_name=output["tableName"],
            status=output.get("status", ""),
            creation_timestamp=output.get("creationTimestamp"),
            schema_definition=flatten_schema_definition(
                output.get("schemaDefinition")
            ),
            comment=(output.get("comment") or {}).get("message"),
            capacity_specification=(
                CapacitySpecification(
                    throughput_mode=capacity["throughputMode"],
                    read_capacity_units=capacity.get("readCapacityUnits"),
                    write_capacity_units=capacity.get("writeCapacityUnits"),
                )
                if capacity
                else None
            ),
            encryption_specification=(
                EncryptionSpecification(
                    type=encryption["type"],
                    kms_key_identifier=encryption.get("kmsKeyIdentifier"),
                )
                if encryption
                else None
            ),
            point_in_time_recovery=(
                (output.get("pointInTimeRecovery") or {}).get("status") == "ENABLED"
            ),
            ttl_enabled=(output.get("ttl") or {}).get("status") == "ENABLED",
            default_time_to_live=output.get("defaultTimeToLive"),
        )


# Remote API shape translation


def expand_schema_definition(schema: Dict[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "allColumns": [
            {"name": c["name"], "type": c["type"]} for c in schema["all_columns"]
        ],
        "partitionKeys": [{"name": k["name"]} for k in schema["partition_keys"]],
    }
    if schema.get("clustering_keys"):
        result["clusteringKeys"] = [
            {"name": k["name"], "orderBy": k["order_by"]}
            for k in schema["clustering_keys"]
        ]
    if schema.get("static_columns"):
        result["staticColumns"] = [{"name": c["name"]} for c in schema["static_columns"]]
    return result


def flatten_schema_definition(
    schema: Optional[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    if not schema:
        return None
    result: Dict[str, Any] = {
        "all_columns": [
            {"name": c["name"], "type": c["type"]}
            for c in schema.get("allColumns", [])
        ],
        "partition_keys": [{"name": k["name"]} for k in schema.get("partitionKeys", [])],
    }
    if schema.get("clusteringKeys"):
        result["clustering_keys"] = [
            {"name": k["name"], "order_by": k["orderBy"]}
            for k in schema["clusteringKeys"]
        ]
    if schema.get("staticColumns"):
        result["static_columns"] = [{"name": c["name"]} for c in schema["staticColumns"]]
    return result


def expand_setting(name: str, value: Any) -> Dict[str, Any]:
    """
    Translate one mutable setting into its request fields.

    Returns an empty dict when the setting is unset, so it is left to the
    remote default.
    """
    if value is None:
        return {}

    if name == "capacity_specification":
        capacity = {"throughputMode": value.throughput_mode.value}
        if value.throughput_mode == ThroughputMode.PROVISIONED:
            capacity["readCapacityUnits"] = value.read_capacity_units
            capacity["writeCapacityUnits"] = value.write_capacity_units
        return {"capacitySpecification": capacity}

    if name == "encryption_specification":
        encryption = {"type": value.type.value}
        if value.kms_key_identifier:
            encryption["kmsKeyIdentifier"] = value.kms_key_identifier
        return {"encryptionSpecification": encryption}

    if name == "point_in_time_recovery":
        return {"pointInTimeRecovery": {"status": "ENABLED" if value else "DISABLED"}}

    if name == "ttl_enabled":
        # The remote only understands enabling TTL
        return {"ttl": {"status": "ENABLED"}} if value else {}

    if name == "default_time_to_live":
        return {"defaultTimeToLive": value}

    raise ValueError(f"Unknown table setting: {name}")


def expand_tags(tags: Dict[str, str]) -> List[Dict[str, str]]:
    return [{"key": k, "value": v} for k, v in sorted(tags.items())]


def flatten_tags(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {t["key"]: t.get("value", "") for t in tags or []}
