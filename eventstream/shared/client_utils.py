from datetime import datetime, timezone

def make_client_stats() -> dict:
    """
    Counters a reader keeps for the whole subscription, across every reconnect.
    The timestamps stay None until the first attempt starts and the first message lands.
    """
    return {
        "messages_received": 0,
        "errors": 0,
        "reconnect_count": 0,
        "bytes_received": 0,
        "last_message_at": None,
        "connected_at": None,
    }

def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def describe_error(error: BaseException) -> str:
    """Short one-line form of a transport failure for log lines and the dashboard."""
    text = str(error).strip().splitlines()
    detail = text[0] if text else ""
    return f"{type(error).__name__}: {detail}" if detail else type(error).__name__
