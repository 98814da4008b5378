import json
import random
import unittest

from pcd_relay.backups import backup_public_id, latest_backup, serialize_snapshot
from pcd_relay.storage import StoredObject


def _entry(public_id: str, created_at: str) -> StoredObject:
    return StoredObject(public_id=public_id, url=f"https://cdn/{public_id}", created_at=created_at)


class SerializeSnapshotTests(unittest.TestCase):
    def test_two_space_indent(self):
        self.assertEqual(serialize_snapshot({"a": 1}), b'{\n  "a": 1\n}')

    def test_keeps_non_ascii_text(self):
        data = serialize_snapshot({"nome": "Conceição"})
        self.assertIn("Conceição".encode("utf-8"), data)
        self.assertEqual(json.loads(data), {"nome": "Conceição"})

    def test_arrays_and_scalars(self):
        self.assertEqual(json.loads(serialize_snapshot([1, "dois", None])), [1, "dois", None])
        self.assertEqual(serialize_snapshot({}), b"{}")


class BackupNameTests(unittest.TestCase):
    def test_public_id_from_millis(self):
        self.assertEqual(backup_public_id(1700000000000), "backup-1700000000000")


class LatestBackupTests(unittest.TestCase):
    def test_empty_listing(self):
        self.assertIsNone(latest_backup([]))

    def test_picks_newest_in_any_order(self):
        entries = [
            _entry("b1", "2024-01-01T00:00:00Z"),
            _entry("b2", "2024-01-01T00:00:01Z"),
            _entry("b3", "2024-02-10T08:15:00Z"),
            _entry("b4", "2023-12-31T23:59:59Z"),
        ]
        for seed in range(5):
            shuffled = entries[:]
            random.Random(seed).shuffle(shuffled)
            self.assertEqual(latest_backup(shuffled).public_id, "b3")

    def test_compares_mixed_timestamp_formats(self):
        entries = [
            _entry("seconds", "2024-05-01T12:00:00Z"),
            _entry("millis", "2024-05-01T12:00:00.500Z"),
            _entry("offset", "2024-05-01T09:00:00-03:00"),
        ]
        self.assertEqual(latest_backup(entries).public_id, "millis")

    def test_unparseable_timestamp_ranks_last(self):
        entries = [_entry("broken", "yesterday"), _entry("ok", "2020-01-01T00:00:00Z")]
        self.assertEqual(latest_backup(entries).public_id, "ok")


if __name__ == "__main__":
    unittest.main()
