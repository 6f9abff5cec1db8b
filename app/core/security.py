def redact_secret(secret: str | None) -> str:
    """
    Redact an API key or token for logging purposes.
    Shows the first 6 characters followed by ***.
    """
    if not secret:
        return "None"
    if len(secret) <= 6:
        return "***"
    return f"{secret[:6]}***"
