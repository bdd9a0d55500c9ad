NOT_AVAILABLE = "N/A"

def fmt_value(v) -> str:
    return str(v) if (v is not None and str(v).strip() != "") else NOT_AVAILABLE

def fmt_list(items) -> str:
    parts = [str(x).strip() for x in items or [] if x is not None and str(x).strip()]
    return ", ".join(parts) if parts else NOT_AVAILABLE
