"""Table formatters for Technitium API responses."""

from technitium_cli.formatters._table import _cell, _key_value_table, _table


def _rdata_summary(rdata):
    """One-line record data: a lone value is shown bare, otherwise k=v pairs."""
    if not isinstance(rdata, dict):
        return _cell(rdata)
    if len(rdata) == 1:
        return _cell(next(iter(rdata.values())))
    return _cell(rdata)


def format_zones_table(data):
    zones = (data or {}).get("zones") or []
    rows = [
        (
            z.get("name"),
            z.get("type"),
            z.get("dnssecStatus"),
            z.get("soaSerial"),
            z.get("disabled", False),
            z.get("lastModified"),
        )
        for z in zones
    ]
    footer = f"Total: {data.get('totalZones', len(zones))} zones" if data else None
    return _table(["Zone", "Type", "DNSSEC", "Serial", "Disabled", "Modified"], rows, footer)


def format_records_table(data):
    records = (data or {}).get("records") or []
    rows = [
        (
            r.get("name"),
            r.get("type"),
            r.get("ttl"),
            r.get("disabled", False),
            _rdata_summary(r.get("rData")),
        )
        for r in records
    ]
    zone = ((data or {}).get("zone") or {}).get("name")
    footer = f"Zone: {zone} ({len(records)} records)" if zone else f"{len(records)} records"
    return _table(["Name", "Type", "TTL", "Disabled", "Data"], rows, footer)


def format_zone_tree_table(data):
    """Shared view for cache, allowed, and blocked listings."""
    data = data or {}
    domain = data.get("domain") or "."
    rows = [(z, "zone") for z in data.get("zones") or []]
    rows.extend(
        (f"{r.get('name')} {r.get('type')}", _rdata_summary(r.get("rData")))
        for r in data.get("records") or []
    )
    return _table(["Entry", "Details"], rows, footer=f"Domain: {domain}")


def format_logs_table(data):
    files = (data or {}).get("logFiles") or []
    return _table(["File", "Size"], [(f.get("fileName"), f.get("size")) for f in files])


def format_stats_table(data):
    stats = (data or {}).get("stats") or {}
    lines = [_key_value_table(stats.items())]
    for key, title in (
        ("topClients", "Top clients"),
        ("topDomains", "Top domains"),
        ("topBlockedDomains", "Top blocked domains"),
    ):
        items = (data or {}).get(key)
        if items:
            lines.append(f"\n{title}:")
            lines.append(_top_rows(items))
    return "\n".join(lines)


def _top_rows(items):
    return _table(["Name", "Hits"], [(i.get("name"), i.get("hits")) for i in items])


def format_top_stats_table(data):
    data = data or {}
    for key in ("topClients", "topDomains", "topBlockedDomains"):
        if key in data:
            return _top_rows(data[key] or [])
    return _key_value_table(data.items())


def format_resolve_table(data):
    result = (data or {}).get("result") or {}
    answers = result.get("Answer") or []
    rows = [
        (a.get("Name"), a.get("Type"), a.get("TTL"), _rdata_summary(a.get("RDATA")))
        for a in answers
    ]
    rcode = (result.get("Header") or {}).get("RCODE")
    return _table(["Name", "Type", "TTL", "Data"], rows, footer=f"RCODE: {_cell(rcode)}")


def format_session_table(data):
    data = dict(data or {})
    if data.get("token"):
        data["token"] = "(hidden)"
    info = data.pop("info", None) or {}
    pairs = list(data.items()) + [(f"info.{k}", v) for k, v in info.items()]
    return _key_value_table(pairs)


def format_endpoints_table(rows):
    return _table(
        ["Endpoint", "Method", "Token", "Description"],
        [(r["id"], r["method"], r["requires_token"], r["description"]) for r in rows],
        footer=f"{len(rows)} endpoints",
    )


def format_mapping_table(data):
    """Fallback: flatten one level of a mapping into Field/Value rows."""
    if not isinstance(data, dict):
        return _cell(data)
    pairs = []
    for key, value in data.items():
        if isinstance(value, dict):
            pairs.extend((f"{key}.{k}", v) for k, v in value.items())
        else:
            pairs.append((key, value))
    return _key_value_table(pairs)
