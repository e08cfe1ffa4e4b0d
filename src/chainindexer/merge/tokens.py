"""Bulk mutations for token documents, roles, properties, NFT updates and tags."""

import base64

from chainindexer.converters.fields import extract_metadata, extract_tags, truncate_field_base64, truncate_slice
from chainindexer.domain.models import NFTDataUpdate, PropertiesData, RoleData, TokenInfo
from chainindexer.merge import scripts
from chainindexer.merge.bulk import BulkBuffer

PRESERVED_TOKEN_FIELDS = ("roles",)


def serialize_tokens(buffer: BulkBuffer, tokens: list[TokenInfo], index: str) -> None:
    """Issued collections and created NFT instances.

    A plain issue replaces the stored token (newest timestamp wins) but keeps
    its roles; an ownership transfer only appends to the owner history.
    """
    for token in tokens:
        source = token.to_source()
        if token.transfer_ownership:
            owner = token.current_owner or ""
            elem = {"address": owner, "timestamp": token.timestamp}
            script = scripts.append_to_list(
                "ownersHistory",
                elem,
                semicolons=False,
                then="ctx._source.currentOwner = params.owner",
                owner=owner,
            )
            buffer.update(index, token.doc_id, script, upsert=source)
            continue

        script = scripts.overwrite_preserving("token", source, PRESERVED_TOKEN_FIELDS)
        buffer.update(index, token.doc_id, script, scripted_upsert=True)


def serialize_roles(buffer: BulkBuffer, roles: dict[str, list[RoleData]], index: str) -> None:
    for role, grants in roles.items():
        for grant in grants:
            if grant.is_set:
                script = scripts.add_to_role(role, grant.address)
                upsert = {"token": grant.token, "roles": {role: [grant.address]}}
            else:
                script = scripts.remove_from_role(role, grant.address)
                upsert = {"token": grant.token}
            buffer.update(index, grant.token, script, upsert=upsert)


def serialize_properties(buffer: BulkBuffer, properties: list[PropertiesData], index: str) -> None:
    for item in properties:
        upsert = {"token": item.token, "properties": item.properties}
        buffer.update(index, item.token, scripts.merge_map("properties", item.properties), upsert=upsert)


def _attributes_script(update: NFTDataUpdate) -> scripts.Script:
    truncated = truncate_field_base64(update.new_attributes.decode("utf-8", errors="replace"))
    attributes = base64.b64encode(truncated.encode()).decode()
    tags = extract_tags(update.new_attributes)
    return scripts.update_nft_attributes(
        attributes,
        extract_metadata(update.new_attributes),
        truncate_slice(tags) if tags is not None else None,
    )


def _uris_script(update: NFTDataUpdate) -> scripts.Script:
    uris = truncate_slice([base64.b64encode(uri).decode() for uri in update.uris_to_add])
    return scripts.union_into_list("data", "uris", uris, flag="nonEmptyURIs")


def serialize_nft_updates(buffer: BulkBuffer, updates: list[NFTDataUpdate], index: str, account_rows: bool) -> None:
    """Apply NFT updates to token documents, or to the holder's balance row when ``account_rows``.

    Freeze and pause flags live on the token document only.
    """
    for update in updates:
        doc_id = f"{update.address}-{update.identifier}" if account_rows else update.identifier

        if update.freeze or update.unfreeze:
            if not account_rows:
                buffer.update(index, doc_id, scripts.set_fields({"frozen": update.freeze}))
            continue
        if update.pause or update.unpause:
            if not account_rows:
                buffer.update(index, doc_id, scripts.set_fields({"paused": update.pause}))
            continue

        script = _uris_script(update) if update.uris_to_add else _attributes_script(update)
        buffer.update(index, doc_id, script)


def tag_id(tag: str) -> str:
    return base64.b64encode(tag.encode()).decode()


def serialize_tags(buffer: BulkBuffer, tags: list[tuple[str, int]], index: str) -> None:
    for tag, count in tags:
        buffer.update(index, tag_id(tag), scripts.increment("count", count), upsert={"tag": tag, "count": count})
