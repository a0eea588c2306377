"""
This module provides the adherence store: where medications, adherence logs
and accounts are persisted.

It defines:
- `AdherenceStore`, the interface the tracker is written against.
- `EncryptedJsonStore`, which keeps everything in a single Fernet-encrypted
  JSON document on disk.
- The field mapping between persisted records (`time_slots`, `is_active`,
  `medication_id`, `user_email`, ...) and the in-memory models.

Writes are applied to a copy of the dataset and only become visible once the
file has been written, so a failed write leaves the store unchanged. The store
does not enforce one log per dose slot; that is the tracker's job.
"""
# pilltracker/modules/store.py

import copy
import json
import logging
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime

from cryptography.fernet import InvalidToken

from modules.errors import CascadeError, NotFound, StoreError
from modules.models import AdherenceLog, Medication, User

logger = logging.getLogger(__name__)

UNKNOWN_MEDICATION = 'Unknown Medication'
UNKNOWN_USER = 'Unknown User'


def medication_from_record(record: dict) -> Medication:
    return Medication(
        medication_id=record['id'],
        name=record.get('name', ''),
        dosage=record.get('dosage', ''),
        frequency=record.get('frequency', len(record.get('time_slots', []))),
        time_slots=record.get('time_slots', []),
        notes=record.get('notes') or '',
        is_active=record.get('is_active', True),
        created_at=record.get('created_at'),
    )


def medication_to_record(medication: Medication) -> dict:
    return {
        'id': medication.medication_id,
        'name': medication.name,
        'dosage': medication.dosage,
        'frequency': medication.frequency,
        'time_slots': list(medication.time_slots),
        'notes': medication.notes,
        'is_active': medication.is_active,
        'created_at': medication.created_at,
    }


def log_from_record(record: dict) -> AdherenceLog:
    return AdherenceLog(
        log_id=record['id'],
        medication_id=record['medication_id'],
        timestamp=datetime.fromisoformat(record['timestamp']),
        taken=record['taken'],
        medication_name=record.get('medication_name') or UNKNOWN_MEDICATION,
        medication_dosage=record.get('medication_dosage') or '',
        reporter=record.get('user_email') or UNKNOWN_USER,
    )


def log_to_record(log: AdherenceLog) -> dict:
    return {
        'id': log.log_id,
        'medication_id': log.medication_id,
        'timestamp': log.timestamp.isoformat(),
        'taken': log.taken,
        'medication_name': log.medication_name,
        'medication_dosage': log.medication_dosage,
        'user_email': log.reporter,
    }


class AdherenceStore(ABC):
    """Persistence collaborator consumed by the tracker.

    Every method may raise `StoreError`. Methods that look up a record by id
    raise `NotFound` when it does not exist.
    """

    @abstractmethod
    def list_medications(self) -> list:
        """Returns all medications, oldest first."""

    @abstractmethod
    def upsert_medication(self, fields: dict) -> Medication:
        """Inserts a medication when `fields` has no 'id', updates it otherwise."""

    @abstractmethod
    def delete_medication(self, medication_id: str):
        """Deletes a medication and every log that references it.

        Raises:
            CascadeError: If the medication was deleted but its logs were not.
        """

    @abstractmethod
    def list_logs(self, scope) -> list:
        """Returns logs; only the scope identity's logs when `scope.self_only`."""

    @abstractmethod
    def insert_log(self, fields: dict) -> AdherenceLog:
        """Inserts a log and returns it with its store-assigned id."""

    @abstractmethod
    def update_log(self, log_id: str, taken: bool):
        """Sets the `taken` flag of an existing log."""

    @abstractmethod
    def delete_log(self, log_id: str):
        """Deletes a single log."""

    @abstractmethod
    def delete_all_logs(self, identity: str):
        """Deletes every log reported by `identity`."""


class EncryptedJsonStore(AdherenceStore):
    """Adherence store backed by one encrypted JSON file."""

    def __init__(self, data_file, encryptor):
        """Loads the dataset from `data_file`.

        Args:
            data_file (str): Path of the encrypted JSON file.
            encryptor: An object with Fernet-style `encrypt`/`decrypt` methods.
        """
        self.data_file = data_file
        self._encryptor = encryptor
        # Streamlit sessions share one store and run on separate threads.
        self._write_lock = threading.Lock()
        self._data = self._load_data()

    @staticmethod
    def _empty_dataset():
        return {"medications": [], "logs": [], "users": {}}

    def _load_data(self):
        """Loads and decrypts the data file.

        Returns:
            dict: The dataset, or an empty one if the file is missing or unreadable.
        """
        try:
            with open(self.data_file, 'r') as f:
                encrypted_data = f.read()
            if not encrypted_data:
                return self._empty_dataset()
            decrypted_data = self._encryptor.decrypt(encrypted_data.encode()).decode()
            data = json.loads(decrypted_data)
        except FileNotFoundError:
            logger.info("Data file %s does not exist yet. Starting with an empty dataset.", self.data_file)
            return self._empty_dataset()
        except (InvalidToken, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Could not load data file %s (%r). Starting with an empty dataset.", self.data_file, e)
            return self._empty_dataset()
        for key, default in self._empty_dataset().items():
            data.setdefault(key, default)
        return data

    def _save_data(self, data):
        """Encrypts a dataset and replaces the data file with it.

        The payload is written to a temporary file next to the data file and
        moved over it, so the old file stays intact until the new one is complete.
        """
        data_to_encrypt = json.dumps(data, indent=4)
        encrypted_data = self._encryptor.encrypt(data_to_encrypt.encode())
        directory = os.path.dirname(os.path.abspath(self.data_file))
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=f'.{os.path.basename(self.data_file)}.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(encrypted_data.decode())
            os.replace(temp_path, self.data_file)
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

    def _write(self, change):
        """Applies `change` to a copy of the dataset, saves it, then keeps it.

        Raises:
            StoreError: If the dataset could not be written.
        """
        with self._write_lock:
            candidate = copy.deepcopy(self._data)
            result = change(candidate)
            try:
                self._save_data(candidate)
            except (OSError, TypeError, ValueError) as e:
                raise StoreError(f"Could not write {self.data_file}: {e}") from e
            self._data = candidate
            return result

    def _read(self, mapper, records) -> list:
        """Maps persisted records to models, reporting malformed ones as a store failure."""
        try:
            return [mapper(r) for r in records]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed record in {self.data_file}: {e!r}") from e

    def list_medications(self) -> list:
        records = sorted(self._data['medications'], key=lambda r: r.get('created_at') or '')
        return self._read(medication_from_record, records)

    def upsert_medication(self, fields: dict) -> Medication:
        medication_id = fields.get('id')

        def change(data):
            if medication_id is None:
                record = {
                    'id': str(uuid.uuid4()),
                    'name': fields['name'],
                    'dosage': fields['dosage'],
                    'frequency': fields['frequency'],
                    'time_slots': list(fields['time_slots']),
                    'notes': fields.get('notes') or '',
                    'is_active': fields.get('is_active', True),
                    'created_at': datetime.now().isoformat(),
                }
                data['medications'].append(record)
                return record
            for record in data['medications']:
                if record['id'] == medication_id:
                    record.update({k: v for k, v in fields.items() if k not in ('id', 'created_at')})
                    return record
            raise NotFound(f"Medication {medication_id} does not exist.")

        return medication_from_record(self._write(change))

    def delete_medication(self, medication_id: str):
        def remove_medication(data):
            remaining = [r for r in data['medications'] if r['id'] != medication_id]
            if len(remaining) == len(data['medications']):
                raise NotFound(f"Medication {medication_id} does not exist.")
            data['medications'] = remaining

        def remove_logs(data):
            data['logs'] = [r for r in data['logs'] if r['medication_id'] != medication_id]

        self._write(remove_medication)
        try:
            self._write(remove_logs)
        except StoreError as e:
            raise CascadeError(medication_id, e) from e

    def list_logs(self, scope) -> list:
        records = self._data['logs']
        if scope.self_only:
            records = [r for r in records if r.get('user_email') == scope.identity]
        return self._read(log_from_record, records)

    def insert_log(self, fields: dict) -> AdherenceLog:
        def change(data):
            record = dict(fields, id=str(uuid.uuid4()))
            data['logs'].append(record)
            return record

        return log_from_record(self._write(change))

    def update_log(self, log_id: str, taken: bool):
        def change(data):
            for record in data['logs']:
                if record['id'] == log_id:
                    record['taken'] = taken
                    return
            raise NotFound(f"Log {log_id} does not exist.")

        self._write(change)

    def delete_log(self, log_id: str):
        def change(data):
            remaining = [r for r in data['logs'] if r['id'] != log_id]
            if len(remaining) == len(data['logs']):
                raise NotFound(f"Log {log_id} does not exist.")
            data['logs'] = remaining

        self._write(change)

    def delete_all_logs(self, identity: str):
        def change(data):
            data['logs'] = [r for r in data['logs'] if r.get('user_email') != identity]

        self._write(change)

    # Accounts used by the auth service.

    def get_user(self, email: str):
        record = self._data['users'].get(email)
        if not record:
            return None
        return User(record['email'], record['password_hash'], record['salt'], record.get('is_admin', False))

    def save_user(self, user: User):
        def change(data):
            data['users'][user.email] = {
                'email': user.email,
                'password_hash': user.password_hash,
                'salt': user.salt,
                'is_admin': user.is_admin,
            }

        self._write(change)

    def count_users(self) -> int:
        return len(self._data['users'])
