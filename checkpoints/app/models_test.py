"""Unit tests for checkpoint models."""

import datetime
import unittest

import pydantic

from checkpoints.app.models import Checkpoint, CheckpointRecord


class TestCheckpointRecord(unittest.TestCase):
    """Tests for CheckpointRecord."""

    def test_parses_upstream_keys(self) -> None:
        record = CheckpointRecord.model_validate(
            {
                'id': 12,
                'State': 'CA',
                'County': 'Alameda',
                'City': None,
                'Location': 'Hesperian Blvd',
                'Description': None,
                'Date': '2025-12-21',
                'Time': '8pm - 2am',
                'Source': 'https://example.com',
                'created_at': '2025-12-01T00:00:00Z',
            }
        )
        self.assertEqual(record.id, '12')
        self.assertEqual(record.county, 'Alameda')
        self.assertIsNone(record.city)
        self.assertEqual(record.description, '')
        self.assertEqual(record.date, '2025-12-21')

    def test_blank_state_defaults(self) -> None:
        self.assertEqual(CheckpointRecord(id='1', State='  ').state, 'CA')
        self.assertEqual(CheckpointRecord(id='1').state, 'CA')
        self.assertEqual(CheckpointRecord(id='1', State=None).state, 'CA')

    def test_missing_state_from_wire(self) -> None:
        record = CheckpointRecord.model_validate({'id': 3, 'City': 'Fresno'})
        self.assertEqual(record.state, 'CA')

    def test_snake_case_names_accepted(self) -> None:
        record = CheckpointRecord(id='1', city='Fresno', state='CA')
        self.assertEqual(record.city, 'Fresno')

    def test_is_frozen(self) -> None:
        record = CheckpointRecord(id='1')
        with self.assertRaises(pydantic.ValidationError):
            record.city = 'Fresno'  # type: ignore[misc]

    def test_to_wire(self) -> None:
        wire = CheckpointRecord(id='1', City='Fresno').to_wire()
        self.assertEqual(wire['City'], 'Fresno')
        self.assertEqual(wire['State'], 'CA')
        self.assertNotIn('city', wire)


class TestCheckpoint(unittest.TestCase):
    """Tests for the Checkpoint table model."""

    def test_to_record(self) -> None:
        checkpoint = Checkpoint(
            id=5,
            city='Glendora',
            county='LA',
            date='2025-07-04',
            created_at=datetime.datetime(2025, 7, 1, tzinfo=datetime.UTC),
        )
        record = checkpoint.to_record()
        self.assertEqual(record.id, '5')
        self.assertEqual(record.state, 'CA')
        self.assertEqual(record.city, 'Glendora')
        self.assertEqual(record.created_at, '2025-07-01T00:00:00+00:00')


if __name__ == '__main__':
    unittest.main()
