"""Server-side merge scripts, expressed as named strategies.

Every strategy returns a Script whose source is a single painless line. The
exact text of the strategies shared with already-deployed indexes must not
change: stored documents are merged by whatever text was sent.
"""

from dataclasses import dataclass, field
from typing import Any

LANG = "painless"


def format_painless_source(source: str) -> str:
    """Collapse a multi-line script into the single-line form sent to the store."""
    return source.replace("\t", "").replace("\n", "").replace("\r", "")


@dataclass(frozen=True)
class Script:
    source: str
    params: dict[str, Any] = field(default_factory=dict)

    def to_body(self) -> dict[str, Any]:
        if not self.params:
            return {"source": self.source}
        return {"source": self.source, "lang": LANG, "params": self.params}


# -- overwrite family ------------------------------------------------------


def overwrite_by_timestamp(param: str, doc: dict) -> Script:
    """Seed on create; otherwise replace unless the stored doc is newer."""
    p = f"params.{param}"
    source = (
        f"if ('create' == ctx.op) {{ctx._source = {p}}} else "
        f"{{if (ctx._source.containsKey('timestamp')) "
        f"{{if (ctx._source.timestamp <= {p}.timestamp) {{ctx._source = {p}}}}} "
        f"else {{ctx._source = {p}}}}}"
    )
    return Script(format_painless_source(source), {param: doc})


def overwrite_preserving(param: str, doc: dict, fields: tuple[str, ...], by_timestamp: bool = True) -> Script:
    """Like overwrite_by_timestamp, but ``fields`` of the stored doc survive the replace."""
    p = f"params.{param}"
    keep = "".join(f"def {f} = ctx._source.{f};" for f in fields)
    restore = "".join(f"if ({f} != null) {{ctx._source.{f} = {f}}}" for f in fields)
    replace = f"{keep}ctx._source = {p};{restore}"
    if by_timestamp:
        replace = (
            f"if (!ctx._source.containsKey('timestamp') || ctx._source.timestamp <= {p}.timestamp) "
            f"{{{replace}}}"
        )
    source = f"if ('create' == ctx.op) {{ctx._source = {p}}} else {{{replace}}}"
    return Script(format_painless_source(source), {param: doc})


def delete_unless_newer(timestamp: int) -> Script:
    """Delete the stored doc unless a newer block wrote it; never create."""
    source = (
        "if ('create' == ctx.op) {ctx.op = 'noop'} else "
        "{if (ctx._source.containsKey('timestamp') && ctx._source.timestamp > params.timestamp) "
        "{ctx.op = 'noop'} else {ctx.op = 'delete'}}"
    )
    return Script(source, {"timestamp": timestamp})


def seed_or_update_fields(param: str, doc: dict, fields: tuple[str, ...]) -> Script:
    """Seed on create; otherwise copy only ``fields``."""
    p = f"params.{param}"
    updates = "".join(f"ctx._source.{f} = {p}.{f};" for f in fields)
    source = f"if ('create' == ctx.op) {{ctx._source = {p}}} else {{{updates}}}"
    return Script(format_painless_source(source), {param: doc})


def noop_if_exists() -> Script:
    """Used with a full upsert body: the first writer creates, later writers change nothing."""
    return Script("return")


def patch_existing(values: dict[str, Any]) -> Script:
    """Never create; patch ``values`` into an existing doc."""
    updates = "".join(f"ctx._source.{key} = params.{key};" for key in values)
    source = f"if ('create' == ctx.op) {{ctx.op = 'noop'}} else {{{updates}}}"
    return Script(format_painless_source(source), dict(values))


def set_fields(values: dict[str, Any]) -> Script:
    source = ";".join(f"ctx._source.{key} = params.{key}" for key in values)
    return Script(format_painless_source(source), dict(values))


# -- append / union family -------------------------------------------------


def append_to_list(list_field: str, elem: dict, semicolons: bool = True, then: str = "", **extra: Any) -> Script:
    """Append ``elem`` to ``list_field``, creating the list when missing."""
    end = ";" if semicolons else ""
    source = (
        f"if (!ctx._source.containsKey('{list_field}')) {{ctx._source.{list_field} = [params.elem]{end}}} "
        f"else {{ctx._source.{list_field}.add(params.elem){end}}}{then}"
    )
    return Script(format_painless_source(source), {"elem": elem, **extra})


def union_into_list(container: str, list_field: str, items: list, flag: str = "") -> Script:
    """Add each of ``items`` to ``container.list_field`` unless already present."""
    path = f"ctx._source.{container}.{list_field}"
    mark = f"ctx._source.{container}.{flag} = true;" if flag else ""
    source = (
        f"if (ctx._source.containsKey('{container}')) {{"
        f"if (!ctx._source.{container}.containsKey('{list_field}')) {{{path} = params.{list_field};}} else {{"
        f"int i;for ( i = 0; i < params.{list_field}.length; i++) {{"
        f"boolean found = false;int j;for ( j = 0; j < {path}.length; j++) {{"
        f"if ( params.{list_field}.get(i) == {path}.get(j) ) {{found = true;break}}}}"
        f"if ( !found ) {{{path}.add(params.{list_field}.get(i))}}}}}}"
        f"{mark}}}"
    )
    return Script(format_painless_source(source), {list_field: items})


def add_to_role(role: str, address: str) -> Script:
    source = (
        "if (ctx._source.containsKey('roles')) {"
        "if (ctx._source.roles.containsKey(params.role)) {"
        "ctx._source.roles.get(params.role).removeIf(p -> p.equals(params.address));"
        "ctx._source.roles.get(params.role).add(params.address)} "
        "else {ctx._source.roles.put(params.role, [params.address])}} "
        "else {ctx._source.roles = new HashMap();ctx._source.roles.put(params.role, [params.address])}"
    )
    return Script(source, {"role": role, "address": address})


def remove_from_role(role: str, address: str) -> Script:
    source = (
        "if (ctx._source.containsKey('roles')) {"
        "if (ctx._source.roles.containsKey(params.role)) {"
        "ctx._source.roles.get(params.role).removeIf(p -> p.equals(params.address))}}"
    )
    return Script(source, {"role": role, "address": address})


def merge_map(map_field: str, values: dict[str, Any]) -> Script:
    source = (
        f"if (!ctx._source.containsKey('{map_field}')) {{ctx._source.{map_field} = new HashMap();}}"
        f"ctx._source.{map_field}.putAll(params.{map_field})"
    )
    return Script(source, {map_field: values})


def increment(counter: str, amount: int) -> Script:
    return Script(f"ctx._source.{counter} += params.{counter}", {counter: amount})


# -- document-specific -----------------------------------------------------


def keep_tx_outcome(doc: dict) -> Script:
    """NFT transfers: replace the tx, but keep outcome fields set by status updates."""
    return overwrite_preserving("tx", doc, ("status", "errorEvent", "completedEvent"), by_timestamp=False)


def apply_status_info(status_info: dict) -> Script:
    source = (
        "if (!params.statusInfo.status.isEmpty()) {ctx._source.status = params.statusInfo.status;}"
        "if (params.statusInfo.completedEvent) {ctx._source.completedEvent = params.statusInfo.completedEvent;}"
        "if (params.statusInfo.errorEvent) {ctx._source.errorEvent = params.statusInfo.errorEvent;}"
    )
    return Script(source, {"statusInfo": status_info})


def update_nft_attributes(attributes: str, metadata: str, tags: list[str] | None) -> Script:
    source = (
        "if (ctx._source.containsKey('data')) {"
        "ctx._source.data.attributes = params.attributes;"
        "if (!params.metadata.isEmpty() ) {ctx._source.data.metadata = params.metadata} "
        "else {if (ctx._source.data.containsKey('metadata')) {ctx._source.data.remove('metadata')}}"
        "if (params.tags != null) {ctx._source.data.tags = params.tags} "
        "else {if (ctx._source.data.containsKey('tags')) {ctx._source.data.remove('tags')}}}"
    )
    return Script(source, {"attributes": attributes, "metadata": metadata, "tags": tags})
