import re
from typing import Iterable, List, Optional, Union

_ADDRESS_SEPARATORS = re.compile(r"[;,]")


def normalize_email_addresses(
    values: Union[str, Iterable[str], None], default_domain: Optional[str] = None
) -> List[str]:
    """
    Split, trim and complete a list of addresses.

    Accepts a single ``;``/``,`` separated string or an iterable of strings.
    Bare usernames get ``@default_domain`` appended; blanks are dropped.
    """
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]

    addresses: List[str] = []
    for value in values:
        for part in _ADDRESS_SEPARATORS.split(str(value or "")):
            address = part.strip()
            if not address:
                continue
            if "@" not in address and default_domain:
                address = f"{address}@{default_domain.lstrip('@')}"
            addresses.append(address)
    return addresses


def truncate(value: Optional[str], max_length: int) -> Optional[str]:
    if value is None:
        return None
    return str(value)[:max_length]
