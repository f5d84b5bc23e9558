"""ABO/Rh red-cell compatibility chart."""

from portal.schemas.donation_request import BLOOD_GROUPS

CAN_DONATE_TO: dict[str, tuple[str, ...]] = {
    "A+": ("A+", "AB+"),
    "A-": ("A+", "A-", "AB+", "AB-"),
    "B+": ("B+", "AB+"),
    "B-": ("B+", "B-", "AB+", "AB-"),
    "AB+": ("AB+",),
    "AB-": ("AB+", "AB-"),
    "O+": ("A+", "B+", "AB+", "O+"),
    "O-": BLOOD_GROUPS,
}

# Derived so the two directions can never disagree
CAN_RECEIVE_FROM: dict[str, tuple[str, ...]] = {
    recipient: tuple(d for d in BLOOD_GROUPS if recipient in CAN_DONATE_TO[d])
    for recipient in BLOOD_GROUPS
}


def is_compatible(donor: str, recipient: str) -> bool:
    return recipient in CAN_DONATE_TO.get(donor, ())


def chart_entry(group: str) -> dict[str, list[str]]:
    return {
        "can_donate_to": list(CAN_DONATE_TO[group]),
        "can_receive_from": list(CAN_RECEIVE_FROM[group]),
    }
