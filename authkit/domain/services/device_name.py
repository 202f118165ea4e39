from __future__ import annotations

from user_agents import parse as parse_user_agent


UNKNOWN_DEVICE = "Unknown device"


def describe_device(user_agent: str | None) -> str:
    if not user_agent:
        return UNKNOWN_DEVICE

    ua = parse_user_agent(user_agent)
    browser = ua.browser.family if ua.browser.family and ua.browser.family != "Other" else None
    os_name = ua.os.family if ua.os.family and ua.os.family != "Other" else None

    if browser and os_name:
        return f"{browser} on {os_name}"
    if browser:
        return browser
    if os_name:
        return f"Unknown browser on {os_name}"
    return UNKNOWN_DEVICE
