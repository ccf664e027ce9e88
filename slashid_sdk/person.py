"""Person data object consumed by the migration and API layers."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any, Protocol


class Bucket(StrEnum):
    """Attribute namespaces: visibility scope combined with end-user access level."""

    ORGANIZATION_END_USER_NO_ACCESS = "end_user_no_access"
    ORGANIZATION_END_USER_READ_ONLY = "end_user_read_only"
    ORGANIZATION_END_USER_READ_WRITE = "end_user_read_write"
    PERSON_POOL_END_USER_NO_ACCESS = "person_pool-end_user_no_access"
    PERSON_POOL_END_USER_READ_ONLY = "person_pool-end_user_read_only"
    PERSON_POOL_END_USER_READ_WRITE = "person_pool-end_user_read_write"


BucketAttributes = dict[str, Any]


class PersonLike(Protocol):
    """Accessors the SDK needs from a person record."""

    def get_email_addresses(self) -> list[str]: ...

    def get_phone_numbers(self) -> list[str]: ...

    def get_region(self) -> str | None: ...

    def get_groups(self) -> list[str]: ...

    def get_all_attributes(self) -> dict[Bucket, BucketAttributes]: ...

    def get_legacy_password_to_migrate(self) -> str | None: ...


def _string_list(parameter_name: str, values: Iterable[Any]) -> list[str]:
    items = list(values)
    if not all(isinstance(item, str) for item in items):
        raise ValueError(f"The {parameter_name} parameter must be a list of strings.")
    return items


def _bucket_attributes(attributes: Mapping[Any, Any]) -> BucketAttributes:
    if not all(isinstance(name, str) for name in attributes):
        raise ValueError("Attribute names must be strings.")
    return dict(attributes)


class Person:
    """Mutable person record.

    Email addresses and phone numbers behave as insertion-ordered sets. Groups keep
    their order and may repeat. Attributes are namespaced by :class:`Bucket`;
    bucket arguments are coerced through ``Bucket(...)`` and unknown names raise
    ``ValueError``.
    """

    def __init__(
        self,
        person_id: str | None = None,
        is_active: bool = True,
        region: str | None = None,
    ) -> None:
        self.person_id = person_id
        self._is_active = is_active
        self._region = region
        self._email_addresses: dict[str, None] = {}
        self._phone_numbers: dict[str, None] = {}
        self._groups: list[str] = []
        self._attributes: dict[Bucket, BucketAttributes] = {}
        self._legacy_password: str | None = None

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> Person:
        """Build a person from an API person payload."""
        person = cls(values.get("person_id"), values.get("active", True), values.get("region"))
        person.set_groups(values.get("groups") or [])
        person.set_all_attributes(values.get("attributes") or {})
        for handle in values.get("handles") or []:
            if handle.get("type") == "email_address":
                person.add_email_address(handle["value"])
            elif handle.get("type") == "phone_number":
                person.add_phone_number(handle["value"])
        return person

    def is_active(self) -> bool:
        return self._is_active

    def set_active(self, is_active: bool) -> Person:
        self._is_active = is_active
        return self

    def get_email_addresses(self) -> list[str]:
        return list(self._email_addresses)

    def add_email_address(self, email_address: str) -> Person:
        self._email_addresses[email_address] = None
        return self

    def set_email_addresses(self, email_addresses: Iterable[str]) -> Person:
        self._email_addresses = dict.fromkeys(_string_list("email_addresses", email_addresses))
        return self

    def get_phone_numbers(self) -> list[str]:
        return list(self._phone_numbers)

    def add_phone_number(self, phone_number: str) -> Person:
        self._phone_numbers[phone_number] = None
        return self

    def set_phone_numbers(self, phone_numbers: Iterable[str]) -> Person:
        self._phone_numbers = dict.fromkeys(_string_list("phone_numbers", phone_numbers))
        return self

    def get_region(self) -> str | None:
        return self._region

    def set_region(self, region: str) -> Person:
        self._region = region
        return self

    def get_groups(self) -> list[str]:
        return list(self._groups)

    def set_groups(self, groups: Iterable[str]) -> Person:
        self._groups = _string_list("groups", groups)
        return self

    def get_legacy_password_to_migrate(self) -> str | None:
        return self._legacy_password

    def set_legacy_password_to_migrate(self, password_hash: str | None) -> Person:
        """Set a password hash, in a supported legacy format, to import with the person."""
        self._legacy_password = password_hash
        return self

    def get_all_attributes(self) -> dict[Bucket, BucketAttributes]:
        return {bucket: dict(attributes) for bucket, attributes in self._attributes.items()}

    def set_all_attributes(self, attributes: Mapping[str, Mapping[str, Any]]) -> Person:
        self._attributes = {
            Bucket(bucket): _bucket_attributes(values) for bucket, values in attributes.items()
        }
        return self

    def get_bucket_attributes(self, bucket: Bucket | str) -> BucketAttributes | None:
        attributes = self._attributes.get(Bucket(bucket))
        return None if attributes is None else dict(attributes)

    def set_bucket_attributes(self, bucket: Bucket | str, attributes: Mapping[str, Any]) -> Person:
        self._attributes[Bucket(bucket)] = _bucket_attributes(attributes)
        return self

    def delete_bucket_attributes(self, bucket: Bucket | str) -> Person:
        self._attributes.pop(Bucket(bucket), None)
        return self

    def get_attribute(self, bucket: Bucket | str, attribute: str) -> Any:
        return self._attributes.get(Bucket(bucket), {}).get(attribute)

    def set_attribute(self, bucket: Bucket | str, attribute: str, value: Any) -> Person:
        self._attributes.setdefault(Bucket(bucket), {})[attribute] = value
        return self

    def delete_attribute(self, bucket: Bucket | str, attribute: str) -> Person:
        self._attributes.get(Bucket(bucket), {}).pop(attribute, None)
        return self

    def has_group(self, group: str) -> bool:
        return group in self._groups

    def has_any_group(self, groups: Iterable[str]) -> bool:
        """Return True when the person is in at least one of ``groups``."""
        return any(group in self._groups for group in groups)

    def has_all_groups(self, groups: Iterable[str]) -> bool:
        """Return True when the person is in every one of ``groups``."""
        return all(group in self._groups for group in groups)
