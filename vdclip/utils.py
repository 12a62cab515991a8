def read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def parse_time_str(time_str: str) -> float:
    """Convert HH:MM:SS or MM:SS or SS to seconds."""
    parts = time_str.strip().split(":")
    if len(parts) > 3:
        raise ValueError(f"Too many components in timestamp '{time_str}'")
    seconds = 0.0
    for part in parts:
        seconds = seconds * 60 + float(part)
    return seconds
