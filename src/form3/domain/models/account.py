"""Account model - the organisation accounts resource payload"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


def _omit_empty(values: Dict[str, Any]) -> Dict[str, Any]:
    """Drop fields holding their zero value (None, "", 0, False, [])"""
    return {key: value for key, value in values.items() if value not in (None, "", 0, False, [])}


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass
class AccountAttributes:
    """Attributes of a bank account"""

    account_classification: Optional[str] = None  # Personal or Business
    account_matching_opt_out: bool = False
    account_number: Optional[str] = None
    alternative_names: List[str] = field(default_factory=list)
    bank_id: Optional[str] = None
    bank_id_code: Optional[str] = None
    base_currency: Optional[str] = None
    bic: Optional[str] = None
    country: Optional[str] = None
    customer_id: Optional[str] = None
    iban: Optional[str] = None
    joint_account: bool = False
    name: List[str] = field(default_factory=list)
    secondary_identification: Optional[str] = None
    status: Optional[str] = None
    switched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return _omit_empty({f.name: getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountAttributes":
        if not isinstance(data, dict):
            raise ValueError("account attributes must be a JSON object")
        return cls(**_known_fields(cls, data))


@dataclass
class AccountData:
    """Resource envelope: identifiers, version and attributes"""

    id: Optional[str] = None
    organisation_id: Optional[str] = None
    type: str = "accounts"
    version: int = 0
    attributes: Optional[AccountAttributes] = None
    created_on: Optional[str] = None
    modified_on: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["attributes"] = self.attributes.to_dict() if self.attributes else None
        return _omit_empty(values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AccountData":
        if not isinstance(data, dict):
            raise ValueError("account data must be a JSON object")
        values = _known_fields(cls, data)
        if values.get("attributes") is not None:
            values["attributes"] = AccountAttributes.from_dict(values["attributes"])
        return cls(**values)


@dataclass
class Account:
    """Top level document exchanged with the accounts endpoint"""

    data: Optional[AccountData] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.data is None:
            return {}
        return {"data": self.data.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        if not isinstance(data, dict):
            raise ValueError("account document must be a JSON object")
        if data.get("data") is None:
            return cls()
        return cls(data=AccountData.from_dict(data["data"]))
