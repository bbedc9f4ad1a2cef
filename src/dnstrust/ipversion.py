from __future__ import annotations

import enum


class IpVersionSetting(str, enum.Enum):
    """Address-family preference for A/AAAA lookups.

    Brief:
      - v4 / v6 tell whether A / AAAA records are queried at all.
      - V4_V6 and V6_V4 both query both families; they differ only in which
        family comes first in the merged address list.
    """

    V4_ONLY = "v4only"
    V6_ONLY = "v6only"
    V4_V6 = "v4v6"
    V6_V4 = "v6v4"

    @property
    def v4(self) -> bool:
        return self is not IpVersionSetting.V6_ONLY

    @property
    def v6(self) -> bool:
        return self is not IpVersionSetting.V4_ONLY

    @classmethod
    def from_text(cls, text: str) -> "IpVersionSetting":
        """Brief: Parse config spellings such as 'v4only', 'v6-then-v4', 'V4_V6'.

        Inputs:
          - text: Preference name; case, '-', '_' and 'then' are ignored.

        Outputs:
          - IpVersionSetting member.

        Raises:
          - ValueError: Unknown spelling.
        """

        if isinstance(text, cls):
            return text
        key = str(text).strip().lower().replace("-", "").replace("_", "")
        key = key.replace("then", "")
        if key in ("v4", "v6"):
            key += "only"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown ip version setting: {text!r}") from None

    def __str__(self) -> str:
        return self.value


DEFAULT_IP_VERSION = IpVersionSetting.V4_V6
