"""
Table Reconciler - create/read/update/delete lifecycle for Keyspaces tables.

Every mutating call is asynchronous on the remote side: the service accepts
the request and moves the table through CREATING / UPDATING / DELETING. Each
operation issues its request and then waits, through the shared state-change
waiter, until the table is ACTIVE again or gone.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from clients.base import TableAPI
from config import TagConfig, TimeoutConfig, get_config
from errors import (
    APIError,
    InvalidConfigError,
    NotFoundError,
    ReplacementRequiredError,
    TableCreateError,
    TableDeleteError,
    TableReadError,
    TableUpdateError,
    TableWaitError,
    TagListError,
    TagSyncError,
    WaitError,
)
from identifiers import create_resource_id, parse_resource_id
from models import (
    IMMUTABLE_FIELDS,
    MUTABLE_FIELDS,
    TableConfig,
    TableState,
    TableStatus,
    expand_schema_definition,
    expand_setting,
    expand_tags,
)
from tags import (
    ignore_aws,
    ignore_config,
    merge_default_tags,
    remove_default_tags,
    update_tags,
)
from waiter import RefreshFunc, wait_for_state

logger = logging.getLogger(__name__)

# (pending, target) status sets for each asynchronous operation
Transition = Tuple[Sequence[str], Sequence[str]]

TABLE_CREATED: Transition = ([TableStatus.CREATING.value], [TableStatus.ACTIVE.value])
TABLE_UPDATED: Transition = ([TableStatus.UPDATING.value], [TableStatus.ACTIVE.value])
TABLE_DELETED: Transition = ([TableStatus.DELETING.value], [])


class TableReconciler:
    """
    Reconciles declared table configuration against the remote service.

    Holds no per-table state; callers serialize operations on the same
    table identifier.
    """

    def __init__(
        self,
        client: TableAPI,
        timeouts: Optional[TimeoutConfig] = None,
        tag_config: Optional[TagConfig] = None,
    ):
        if timeouts is None or tag_config is None:
            config = get_config()
            timeouts = timeouts or config.timeouts
            tag_config = tag_config or config.tags

        self.client = client
        self.timeouts = timeouts
        self.tag_config = tag_config

    async def create(self, config: Union[TableConfig, Dict[str, Any]]) -> str:
        """
        Create a table and wait for it to become ACTIVE.

        Args:
            config: Declared table configuration.

        Returns:
            The table's external identifier.

        Raises:
            InvalidConfigError: If a plain dict config fails validation, or
                no schema_definition is declared.
            TableCreateError: If the create request is rejected.
            TableWaitError: If the table does not become ACTIVE in time.
        """
        if isinstance(config, dict):
            config = TableConfig.from_dict(config)

        if not config.schema_definition:
            raise InvalidConfigError(
                "invalid table configuration: schema_definition is required "
                f"to create {config.resource_id}"
            )

        keyspace_name = config.keyspace_name
        table_name = config.table_name
        resource_id = create_resource_id(keyspace_name, table_name)

        request: Dict[str, Any] = {
            "keyspaceName": keyspace_name,
            "tableName": table_name,
            "schemaDefinition": expand_schema_definition(config.schema_definition),
        }
        if config.comment is not None:
            request["comment"] = {"message": config.comment}
        for name in MUTABLE_FIELDS:
            request.update(expand_setting(name, getattr(config, name)))

        tags = ignore_aws(merge_default_tags(config.tags, self.tag_config))
        if tags:
            # The API rejects an explicitly empty tag list
            request["tags"] = expand_tags(tags)

        logger.debug(f"Creating Keyspaces Table: {request}")
        try:
            await self.client.create_table(request)
        except APIError as e:
            raise TableCreateError(resource_id, e) from e

        logger.info(f"Keyspaces Table ({resource_id}) create requested")

        try:
            await self._wait(
                keyspace_name, table_name, TABLE_CREATED, self.timeouts.create
            )
        except (WaitError, APIError) as e:
            raise TableWaitError(resource_id, "create", e) from e

        logger.info(f"Keyspaces Table ({resource_id}) is active")
        return resource_id

    async def read(
        self, resource_id: str, new_resource: bool = False
    ) -> Optional[TableState]:
        """
        Read the current state of a table.

        Args:
            resource_id: The table's external identifier.
            new_resource: True when called right after a successful create.

        Returns:
            The observed TableState, or None if a previously tracked table
            no longer exists and should be dropped from state.

        Raises:
            InvalidIdentifierError: If resource_id is malformed.
            TableReadError: If the lookup fails, or the table is missing
                right after creation.
            TagListError: If the table's tags cannot be listed.
        """
        keyspace_name, table_name = parse_resource_id(resource_id)

        try:
            output = await self.client.get_table(keyspace_name, table_name)
        except NotFoundError as e:
            if not new_resource:
                logger.warning(
                    f"Keyspaces Table ({resource_id}) not found, removing from state"
                )
                return None
            raise TableReadError(resource_id, e) from e
        except APIError as e:
            raise TableReadError(resource_id, e) from e

        state = TableState.from_api(output)

        try:
            remote_tags = await self.client.list_tags(state.arn)
        except APIError as e:
            raise TagListError(resource_id, e) from e

        tags_all = ignore_config(ignore_aws(remote_tags), self.tag_config)
        state.tags_all = tags_all
        state.tags = remove_default_tags(tags_all, self.tag_config)

        return state

    async def update(
        self,
        resource_id: str,
        old_config: TableConfig,
        new_config: TableConfig,
        arn: Optional[str] = None,
    ) -> None:
        """
        Apply changed settings and tags to an existing table.

        Each changed setting is sent in its own update request followed by a
        wait for ACTIVE. Tags are synchronized separately; a tag failure does
        not undo settings already applied.

        Args:
            resource_id: The table's external identifier.
            old_config: Configuration currently applied.
            new_config: Desired configuration.
            arn: Table ARN for tag sync; looked up when not given.

        Raises:
            InvalidIdentifierError: If resource_id is malformed.
            ReplacementRequiredError: If an immutable field changed, or TTL
                would be turned off.
            TableUpdateError: If an update request is rejected.
            TableWaitError: If the table does not return to ACTIVE in time.
            TagSyncError: If tags cannot be synchronized.
        """
        keyspace_name, table_name = parse_resource_id(resource_id)

        immutable = replacement_fields(old_config, new_config)
        if immutable:
            raise ReplacementRequiredError(immutable)

        changed = new_config.changed_fields(old_config)

        for name in MUTABLE_FIELDS:
            if name not in changed:
                continue

            setting = expand_setting(name, getattr(new_config, name))
            if not setting:
                logger.info(
                    f"Keyspaces Table ({resource_id}) {name} needs no update "
                    f"request, leaving remote value unchanged"
                )
                continue

            request = {"keyspaceName": keyspace_name, "tableName": table_name}
            request.update(setting)

            logger.debug(f"Updating Keyspaces Table: {request}")
            try:
                output = await self.client.update_table(request)
            except APIError as e:
                raise TableUpdateError(resource_id, e) from e

            arn = arn or (output or {}).get("resourceArn")

            try:
                await self._wait(
                    keyspace_name, table_name, TABLE_UPDATED, self.timeouts.update
                )
            except (WaitError, APIError) as e:
                raise TableWaitError(resource_id, "update", e) from e

            logger.info(f"Keyspaces Table ({resource_id}) {name} updated")

        old_tags = merge_default_tags(old_config.tags, self.tag_config)
        new_tags = merge_default_tags(new_config.tags, self.tag_config)
        if old_tags != new_tags:
            await self._sync_tags(resource_id, arn, old_tags, new_tags)

    async def delete(self, resource_id: str) -> None:
        """
        Delete a table and wait until it is gone.

        A table that is already gone counts as deleted.

        Raises:
            InvalidIdentifierError: If resource_id is malformed.
            TableDeleteError: If the delete request is rejected.
            TableWaitError: If the table is not gone in time.
        """
        keyspace_name, table_name = parse_resource_id(resource_id)

        logger.debug(f"Deleting Keyspaces Table: ({resource_id})")
        try:
            await self.client.delete_table(keyspace_name, table_name)
        except NotFoundError:
            logger.info(f"Keyspaces Table ({resource_id}) already deleted")
            return
        except APIError as e:
            raise TableDeleteError(resource_id, e) from e

        try:
            await self._wait(
                keyspace_name, table_name, TABLE_DELETED, self.timeouts.delete
            )
        except (WaitError, APIError) as e:
            raise TableWaitError(resource_id, "delete", e) from e

        logger.info(f"Keyspaces Table ({resource_id}) deleted")

    # Private helper methods

    async def _sync_tags(
        self,
        resource_id: str,
        arn: Optional[str],
        old_tags: Dict[str, str],
        new_tags: Dict[str, str],
    ) -> None:
        try:
            if not arn:
                keyspace_name, table_name = parse_resource_id(resource_id)
                output = await self.client.get_table(keyspace_name, table_name)
                arn = output["resourceArn"]
            await update_tags(self.client, arn, old_tags, new_tags)
        except APIError as e:
            raise TagSyncError(resource_id, e) from e

        logger.info(f"Keyspaces Table ({resource_id}) tags updated")

    def _status_table(self, keyspace_name: str, table_name: str) -> RefreshFunc:
        """Refresh function reporting the table's status, or absence."""

        async def refresh() -> Tuple[Optional[Dict[str, Any]], str]:
            try:
                output = await self.client.get_table(keyspace_name, table_name)
            except NotFoundError:
                return None, ""

            status = output.get("status", "")
            if status == TableStatus.DELETED.value:
                return None, ""
            return output, status

        return refresh

    async def _wait(
        self,
        keyspace_name: str,
        table_name: str,
        transition: Transition,
        timeout: float,
    ) -> Optional[Dict[str, Any]]:
        pending, target = transition
        return await wait_for_state(
            pending=pending,
            target=target,
            refresh=self._status_table(keyspace_name, table_name),
            timeout=timeout,
            poll_interval=self.timeouts.poll_interval,
            not_found_checks=self.timeouts.not_found_checks,
        )


def replacement_fields(old_config: TableConfig, new_config: TableConfig) -> List[str]:
    """Changed fields that force the table to be replaced rather than updated."""
    fields = [
        name for name in new_config.changed_fields(old_config) if name in IMMUTABLE_FIELDS
    ]
    # TTL cannot be turned off once enabled
    if old_config.ttl_enabled and new_config.ttl_enabled is False:
        fields.append("ttl_enabled")
    return fields
