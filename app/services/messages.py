"""Outbound SMS wording."""

BRAND = "Safe Not Sorry"


def initial(first_name: str, token: str) -> str:
    return (
        f"Hi {first_name}, this is your check in from {BRAND}. "
        f"Please reply “{token}” to this message so we know you’re safe and well."
    )


def reminder(first_name: str, token: str) -> str:
    return (
        f"Hello {first_name}, please respond “{token}” as soon as possible. "
        "If we don’t hear from you soon we will notify your emergency contact person."
    )


def escalation(contact_name: str, first_name: str) -> str:
    return (
        f"Hello {contact_name}, you are a nominated contact for {first_name}. "
        f"{first_name} has not responded to their daily check in from {BRAND}. "
        "Please consider checking on them, thank you."
    )


def confirmation() -> str:
    return f"Thank you! Have a wonderful day. {BRAND}."
