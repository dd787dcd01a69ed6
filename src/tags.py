"""
Tag handling for Keyspaces tables.

Tags are plain ``Dict[str, str]`` mappings. Provider default tags are merged
under resource tags on write and split back out on read; ignored tags (the
reserved ``aws:`` prefix plus configured keys and prefixes) are never
managed.
"""

import logging
from typing import Dict, Optional

from clients.base import TableAPI
from config import TagConfig
from models import expand_tags

logger = logging.getLogger(__name__)

AWS_TAG_PREFIX = "aws:"


def ignore_aws(tags: Dict[str, str]) -> Dict[str, str]:
    """Drop tags with the reserved ``aws:`` prefix."""
    return {k: v for k, v in tags.items() if not k.startswith(AWS_TAG_PREFIX)}


def ignore_config(tags: Dict[str, str], tag_config: TagConfig) -> Dict[str, str]:
    """Drop tags whose key is ignored by the provider configuration."""
    return {
        k: v
        for k, v in tags.items()
        if k not in tag_config.ignore_keys
        and not any(k.startswith(p) for p in tag_config.ignore_key_prefixes)
    }


def merge_default_tags(
    tags: Optional[Dict[str, str]], tag_config: TagConfig
) -> Dict[str, str]:
    """Merge provider default tags under resource tags; resource tags win."""
    merged = dict(tag_config.default_tags)
    merged.update(tags or {})
    return merged


def remove_default_tags(tags: Dict[str, str], tag_config: TagConfig) -> Dict[str, str]:
    """Drop tags that match a provider default tag key and value."""
    defaults = tag_config.default_tags
    return {k: v for k, v in tags.items() if defaults.get(k) != v}


def tags_removed(old: Dict[str, str], new: Dict[str, str]) -> Dict[str, str]:
    """Tags present in old whose key is absent from new."""
    return {k: v for k, v in old.items() if k not in new}


def tags_updated(old: Dict[str, str], new: Dict[str, str]) -> Dict[str, str]:
    """Tags in new that are missing from old or carry a different value."""
    return {k: v for k, v in new.items() if old.get(k) != v}


async def update_tags(
    client: TableAPI,
    arn: str,
    old: Optional[Dict[str, str]],
    new: Optional[Dict[str, str]],
) -> None:
    """
    Apply the delta between two tag mappings to a resource.

    Removed keys are untagged first, then added or changed keys are tagged.
    Both calls set absolute key/value pairs, so reapplying a delta is harmless.

    Args:
        client: Remote API client.
        arn: Resource ARN.
        old: Previously applied tags.
        new: Desired tags.
    """
    old_tags = ignore_aws(old or {})
    new_tags = ignore_aws(new or {})

    removed = tags_removed(old_tags, new_tags)
    if removed:
        logger.debug(f"Removing tags {sorted(removed)} from {arn}")
        await client.untag_resource(arn, expand_tags(removed))

    updated = tags_updated(old_tags, new_tags)
    if updated:
        logger.debug(f"Setting tags {sorted(updated)} on {arn}")
        await client.tag_resource(arn, expand_tags(updated))
