from sitegate.maintenance.gate import (
    BYPASS_COOKIE_NAME,
    Admit,
    BypassCookie,
    Deny,
    GateRequest,
    evaluate,
)

__all__ = ["BYPASS_COOKIE_NAME", "Admit", "BypassCookie", "Deny", "GateRequest", "evaluate"]
