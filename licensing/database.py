"""File-backed repositories for license records and the activation marker."""

from collections.abc import Callable

from clients.json_store_client import BaseStoreClient
from licensing.types import ActivatedLicense, License

LICENSES_COLLECTION = "licenses"
ACTIVATION_DOCUMENT = "user-license"


class LicenseRepository:
    """License store: every license ever generated, keyed by id and by key."""

    def __init__(self, store: BaseStoreClient):
        self._store = store

    def exists(self) -> bool:
        """True if the licenses file has been created."""
        return self._store.exists(LICENSES_COLLECTION)

    def list_all(self) -> list[License]:
        return [
            License.from_stored(row, LICENSES_COLLECTION)
            for row in self._store.read_collection(LICENSES_COLLECTION)
        ]

    def find_by_key(self, license_key: str) -> License | None:
        """Find license by exact key."""
        for row in self._store.read_collection(LICENSES_COLLECTION):
            if row.get("licenseKey") == license_key:
                return License.from_stored(row, LICENSES_COLLECTION)
        return None

    def add_generated(self, build: Callable[[set[str]], list[License]]) -> list[License]:
        """
        Append licenses built against the keys already stored, in one write.

        build(taken_keys) runs under the collection lock, so no other writer
        can store a colliding key in between. If build raises, nothing is
        written.
        """
        with self._store.mutate_collection(LICENSES_COLLECTION) as rows:
            created = build({row.get("licenseKey") for row in rows})
            rows.extend(lic.to_json_dict() for lic in created)
        return created

    def update(
        self,
        license_id: str,
        apply: Callable[[License], None],
    ) -> tuple[License, License] | None:
        """
        Read-modify-write one license under the collection lock.

        Returns:
            (before, after) records, or None if no license has this id.
        """
        with self._store.mutate_collection(LICENSES_COLLECTION) as rows:
            for index, row in enumerate(rows):
                if row.get("id") == license_id:
                    record = License.from_stored(row, LICENSES_COLLECTION)
                    before = record.model_copy(deep=True)
                    apply(record)
                    rows[index] = record.to_json_dict()
                    return before, record
        return None

    def delete(self, license_id: str) -> License | None:
        """Remove by id. Returns the removed record, or None if not found."""
        with self._store.mutate_collection(LICENSES_COLLECTION) as rows:
            for index, row in enumerate(rows):
                if row.get("id") == license_id:
                    record = License.from_stored(row, LICENSES_COLLECTION)
                    del rows[index]
                    return record
        return None


class ActivationRepository:
    """The single activated-license marker of this installation."""

    def __init__(self, store: BaseStoreClient):
        self._store = store

    def load(self) -> ActivatedLicense | None:
        data = self._store.read_document(ACTIVATION_DOCUMENT)
        if data is None:
            return None
        return ActivatedLicense.from_stored(data, ACTIVATION_DOCUMENT)

    def save(self, marker: ActivatedLicense) -> None:
        """Write the marker, replacing any previous one."""
        self._store.write_document(ACTIVATION_DOCUMENT, marker.to_json_dict())

    def clear(self) -> bool:
        """Delete the marker. False if there was none."""
        return self._store.delete(ACTIVATION_DOCUMENT)
