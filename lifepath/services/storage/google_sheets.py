"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted storage backend because:
1. Users can view their goals and finances directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- gspread is blocking; every call runs in a worker thread (asyncio.to_thread)
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (profile updates overwrite a whole row)
- Limited query capabilities (we filter in Python)

The implementation follows the abstract interface, so we can swap
to a hosted database later without changing quiz or dashboard logic.
"""

import asyncio
import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lifepath.config import get_settings
from lifepath.models.audit import AuditEvent, AuditEventType, AuditSeverity
from lifepath.models.profile import ProfileUpdate, UserPreferences, UserProfile
from lifepath.models.quiz import Answer
from lifepath.models.records import RECORD_TYPES, RecordCollection, UserRecord
from lifepath.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    ProfileStorageInterface,
    RecordStorageInterface,
    StorageError,
    sort_records,
)


_BASE_COLUMNS = ["id", "user_id", "created_at", "updated_at"]

# Column mappings for the record sheets
RECORD_COLUMNS: dict[RecordCollection, list[str]] = {
    RecordCollection.GOALS: _BASE_COLUMNS + [
        "title",
        "description",
        "category",
        "target_date",
        "status",
        "progress",
    ],
    RecordCollection.LEARNINGS: _BASE_COLUMNS + [
        "skill_name",
        "description",
        "progress",
        "status",
    ],
    RecordCollection.DREAMS: _BASE_COLUMNS + [
        "title",
        "description",
        "category",
        "status",
    ],
    RecordCollection.FINANCES: _BASE_COLUMNS + [
        "type",
        "amount",
        "description",
        "category",
        "entry_date",
    ],
}

PROFILE_COLUMNS = [
    "user_id",
    "email",
    "full_name",
    "quiz_completed",
    "quiz_answers_json",
    "completed_at",
    "preferences_json",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _safe_get(row: list, index: int, default: str = "") -> str:
    """Handle short rows: Sheets drops trailing empty cells."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @property
    def settings(self):
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_record_sheet(self, collection: RecordCollection) -> gspread.Worksheet:
        names = {
            RecordCollection.GOALS: self._settings.goals_sheet_name,
            RecordCollection.LEARNINGS: self._settings.learnings_sheet_name,
            RecordCollection.DREAMS: self._settings.dreams_sheet_name,
            RecordCollection.FINANCES: self._settings.finances_sheet_name,
        }
        return self.get_worksheet(names[collection], RECORD_COLUMNS[collection])

    def get_profiles_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(self._settings.profiles_sheet_name, PROFILE_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsRecordStorage(RecordStorageInterface):
    """
    Google Sheets implementation of record storage.

    One worksheet per collection, one record per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _record_to_row(record: UserRecord) -> list[str]:
        """Convert a record to a spreadsheet row."""
        data = record.model_dump(mode="json")
        return [
            "" if data.get(column) is None else str(data[column])
            for column in RECORD_COLUMNS[record.collection]
        ]

    @staticmethod
    def _row_to_record(collection: RecordCollection, row: list) -> UserRecord:
        """
        Convert a spreadsheet row to a record.

        Empty cells are left out so model defaults apply.
        """
        data = {
            column: _safe_get(row, index)
            for index, column in enumerate(RECORD_COLUMNS[collection])
        }
        data = {key: value for key, value in data.items() if value != ""}
        return RECORD_TYPES[collection].model_validate(data)

    def _read_rows(self, collection: RecordCollection) -> list[list]:
        return self._client.get_record_sheet(collection).get_all_values()

    def _find_row_index(self, rows: list[list], user_id: str, record_id: UUID) -> Optional[int]:
        """1-based sheet row of a record, or None."""
        for idx, row in enumerate(rows[1:], start=2):  # Row 1 is header
            if row and _safe_get(row, 0) == str(record_id) and _safe_get(row, 1) == user_id:
                return idx
        return None

    async def list_by_user(
        self,
        collection: RecordCollection,
        user_id: str,
    ) -> list[UserRecord]:
        """List a user's records in one collection."""
        try:
            all_rows = (await asyncio.to_thread(self._read_rows, collection))[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list {collection.value}: {e}")

        records = []
        for row in all_rows:
            if not row or _safe_get(row, 1) != user_id:
                continue
            try:
                records.append(self._row_to_record(collection, row))
            except ValueError:
                continue  # Skip malformed rows

        return sort_records(records)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(DuplicateError),
        reraise=True,
    )
    async def insert(self, record: UserRecord) -> UserRecord:
        """Append a record to its worksheet."""
        return await asyncio.to_thread(self._append_record, record)

    def _append_record(self, record: UserRecord) -> UserRecord:
        try:
            sheet = self._client.get_record_sheet(record.collection)
            existing_ids = sheet.col_values(1)[1:]
            if str(record.id) in existing_ids:
                raise DuplicateError(f"Record already exists: {record.id}")
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save record: {e}")

    async def update(self, record: UserRecord) -> UserRecord:
        """Overwrite an existing record's row."""
        return await asyncio.to_thread(self._overwrite_record, record)

    def _overwrite_record(self, record: UserRecord) -> UserRecord:
        try:
            sheet = self._client.get_record_sheet(record.collection)
            idx = self._find_row_index(sheet.get_all_values(), record.user_id, record.id)
            if idx is None:
                raise NotFoundError(f"Record not found: {record.id}")
            record.updated_at = datetime.utcnow()
            sheet.update(
                values=[self._record_to_row(record)],
                range_name=f"A{idx}",
                value_input_option="RAW",
            )
            return record
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update record: {e}")

    async def delete(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> bool:
        """Delete a record's row."""
        return await asyncio.to_thread(self._delete_row, collection, user_id, record_id)

    def _delete_row(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> bool:
        try:
            sheet = self._client.get_record_sheet(collection)
            idx = self._find_row_index(sheet.get_all_values(), user_id, record_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete record: {e}")

    async def get(
        self,
        collection: RecordCollection,
        user_id: str,
        record_id: UUID,
    ) -> Optional[UserRecord]:
        """Retrieve one record."""
        try:
            all_rows = await asyncio.to_thread(self._read_rows, collection)
        except Exception as e:
            raise StorageError(f"Failed to get record: {e}")

        idx = self._find_row_index(all_rows, user_id, record_id)
        if idx is None:
            return None
        return self._row_to_record(collection, all_rows[idx - 1])


class GoogleSheetsProfileStorage(ProfileStorageInterface):
    """
    Google Sheets implementation of profile storage.

    One row per user. Answers and preferences are JSON-serialized.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _profile_to_row(profile: UserProfile) -> list[str]:
        return [
            profile.user_id,
            profile.email or "",
            profile.full_name or "",
            str(profile.quiz_completed),
            json.dumps([answer.model_dump(mode="json") for answer in profile.quiz_answers]),
            profile.completed_at.isoformat() if profile.completed_at else "",
            profile.preferences.model_dump_json(),
            profile.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_profile(row: list) -> UserProfile:
        answers_json = _safe_get(row, 4)
        preferences_json = _safe_get(row, 6)
        completed_at = _safe_get(row, 5)
        updated_at = _safe_get(row, 7)
        return UserProfile(
            user_id=_safe_get(row, 0),
            email=_safe_get(row, 1) or None,
            full_name=_safe_get(row, 2) or None,
            quiz_completed=_safe_get(row, 3).lower() == "true",
            quiz_answers=[
                Answer.model_validate(item) for item in json.loads(answers_json)
            ] if answers_json else [],
            completed_at=datetime.fromisoformat(completed_at) if completed_at else None,
            preferences=(
                UserPreferences.model_validate_json(preferences_json)
                if preferences_json else UserPreferences()
            ),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else datetime.utcnow(),
        )

    def _read_rows(self) -> list[list]:
        return self._client.get_profiles_sheet().get_all_values()

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Retrieve a user's profile row."""
        try:
            all_rows = (await asyncio.to_thread(self._read_rows))[1:]
        except Exception as e:
            raise StorageError(f"Failed to get profile: {e}")

        for row in all_rows:
            if row and _safe_get(row, 0) == user_id:
                return self._row_to_profile(row)
        return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def update_profile(self, user_id: str, update: ProfileUpdate) -> bool:
        """Write the quiz completion, replacing the user's row if present."""
        return await asyncio.to_thread(self._write_profile, user_id, update)

    def _write_profile(self, user_id: str, update: ProfileUpdate) -> bool:
        try:
            sheet = self._client.get_profiles_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and _safe_get(row, 0) == user_id:
                    profile = self._row_to_profile(row).apply(update)
                    sheet.update(
                        values=[self._profile_to_row(profile)],
                        range_name=f"A{idx}",
                        value_input_option="RAW",
                    )
                    return True

            profile = UserProfile(user_id=user_id).apply(update)
            sheet.append_row(self._profile_to_row(profile), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to update profile: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            user_id=_safe_get(row, 4) or None,
            entity_type=_safe_get(row, 5) or None,
            entity_id=_safe_get(row, 6) or None,
            correlation_id=UUID(_safe_get(row, 7)) if _safe_get(row, 7) else None,
            description=_safe_get(row, 8),
            details=json.loads(_safe_get(row, 9)) if _safe_get(row, 9) else {},
            error_message=_safe_get(row, 10) or None,
            is_user_action=_safe_get(row, 11).lower() == "true",
        )

    def _append_row(self, row: list[str]) -> None:
        self._client.get_audit_sheet().append_row(row, value_input_option="RAW")

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        return events

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            await asyncio.to_thread(self._append_row, event.to_sheets_row())
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [
                e for e in await asyncio.to_thread(self._read_events)
                if e.correlation_id == correlation_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = [
                e for e in await asyncio.to_thread(self._read_events)
                if user_id is None or e.user_id == user_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
