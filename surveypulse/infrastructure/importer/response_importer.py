"""
Response Importer - Excel/CSV Survey Response Import
====================================================

Parses an Excel or CSV export of survey responses, auto-detects the
columns and loads the rows into the SQLite response store.
Supports .xlsx, .xls, and .csv formats.

Only the rating column is required. Everything else (comment, customer
fields, timestamp, template, source, would-recommend) is picked up when a
matching column exists.
"""

import logging
import re
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

import pandas as pd

from ..persistence.database import Database

logger = logging.getLogger(__name__)

# Column name variations for auto-detection, most specific first
RATING_PATTERNS = ['overall_rating', 'rating', 'score', 'stars', 'nps']
COMMENT_PATTERNS = ['comment', 'feedback', 'review', 'remarks', 'notes']
NAME_PATTERNS = ['customer_name', 'client_name', 'full_name', 'fullname', 'name']
EMAIL_PATTERNS = ['customer_email', 'email', 'e-mail', 'mail']
PHONE_PATTERNS = ['customer_phone', 'phone_number', 'mobile_number', 'phone', 'mobile', 'cell', 'whatsapp']
CREATED_PATTERNS = ['created_at', 'submitted_at', 'timestamp', 'datetime', 'date', 'time']
TEMPLATE_PATTERNS = ['template_id', 'template', 'survey_id', 'survey']
SOURCE_PATTERNS = ['source', 'channel', 'origin']
RECOMMEND_PATTERNS = ['would_recommend', 'recommend']

FIELD_PATTERNS = {
    'overall_rating': RATING_PATTERNS,
    'comment': COMMENT_PATTERNS,
    'customer_name': NAME_PATTERNS,
    'customer_email': EMAIL_PATTERNS,
    'customer_phone': PHONE_PATTERNS,
    'created_at': CREATED_PATTERNS,
    'template_id': TEMPLATE_PATTERNS,
    'source': SOURCE_PATTERNS,
    'would_recommend': RECOMMEND_PATTERNS,
}

TRUE_WORDS = {'1', 'true', 'yes', 'y', 'si', 'sí'}
FALSE_WORDS = {'0', 'false', 'no', 'n'}

DEFAULT_SOURCE = 'import'


class ResponseImporter:
    """
    Survey response importer with auto-detection of columns.

    Usage:
        importer = ResponseImporter(db)
        rows, columns = importer.parse("responses.xlsx")
        result = importer.import_file("responses.csv", tenant_id="t-1")
        # {"parsed": 120, "added": 120, "errors": [], "columns": {...}}
    """

    def __init__(self, database: Optional[Database] = None):
        self._db = database
        self.detected_columns: Dict[str, Optional[str]] = {}

    def read_frame(
        self,
        source: Union[str, Path, BinaryIO],
        filename: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ) -> pd.DataFrame:
        """Read a path or an uploaded buffer into a DataFrame."""
        if isinstance(source, (str, Path)):
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"File not found: {source}")
            filename = filename or path.name

        ext = Path(filename or '').suffix.lower()

        if ext == '.csv':
            return pd.read_csv(source)
        if ext in ['.xlsx', '.xls']:
            return pd.read_excel(source, sheet_name=sheet_name or 0)
        raise ValueError(f"Unsupported file format: {ext or 'unknown'}. Use .xlsx, .xls, or .csv")

    def parse(
        self,
        source: Union[str, Path, BinaryIO],
        filename: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ) -> Tuple[List[Dict], Dict[str, Optional[str]]]:
        """
        Parse a file into response dicts ready for ``Database.bulk_add_responses``.

        Returns:
            Tuple of (responses list, detected column mapping)
        """
        df = self.read_frame(source, filename=filename, sheet_name=sheet_name)

        df.columns = [str(col).strip().lower() for col in df.columns]

        self.detected_columns = self._detect_columns(df.columns)
        logger.info(f"Detected columns: {self.detected_columns}")

        if not self.detected_columns['overall_rating']:
            raise ValueError("Could not detect a 'Rating' column. Please ensure your file has a column with ratings.")

        responses = []
        for record in df.to_dict(orient='records'):
            response = self._to_response(record)
            if response is not None:
                responses.append(response)

        logger.info(f"Parsed {len(responses)} responses from {filename or source}")
        return responses, self.detected_columns

    def import_file(
        self,
        source: Union[str, Path, BinaryIO],
        tenant_id: str,
        filename: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ) -> dict:
        """Parse and insert in one go. Needs a database."""
        if self._db is None:
            raise RuntimeError("ResponseImporter was created without a database")
        if not tenant_id:
            raise ValueError("tenant_id is required")

        responses, columns = self.parse(source, filename=filename, sheet_name=sheet_name)
        result = self._db.bulk_add_responses(tenant_id, responses)
        return {
            'parsed': len(responses),
            'added': result['added'],
            'errors': result['errors'],
            'columns': columns,
        }

    # ── Column detection ───────────────────────────────────────────

    def _detect_columns(self, columns) -> Dict[str, Optional[str]]:
        detected: Dict[str, Optional[str]] = {}
        taken = set()
        for field_name, patterns in FIELD_PATTERNS.items():
            col = self._find_column(columns, patterns, taken)
            detected[field_name] = col
            if col:
                taken.add(col)
        return detected

    @staticmethod
    def _key(name: str) -> str:
        return re.sub(r'[\s\-]+', '_', name)

    def _find_column(self, columns, patterns: List[str], taken=()) -> Optional[str]:
        """Exact match first, then substring match, in pattern order."""
        available = [(col, self._key(col)) for col in columns if col not in taken]
        keys = [self._key(pattern) for pattern in patterns]
        for key in keys:
            for col, col_key in available:
                if col_key == key:
                    return col
        for key in keys:
            for col, col_key in available:
                if key in col_key:
                    return col
        return None

    # ── Row cleaning ───────────────────────────────────────────────

    def _to_response(self, record: dict) -> Optional[Dict]:
        cols = self.detected_columns

        rating = self._clean_number(record.get(cols['overall_rating']))
        if rating is None:
            return None

        response = {
            'overall_rating': rating,
            'comment': self._clean_text(record.get(cols['comment'])) if cols['comment'] else '',
            'source': DEFAULT_SOURCE,
        }

        for field_name in ('customer_name', 'customer_email', 'template_id', 'source'):
            col = cols[field_name]
            if col:
                value = self._clean_text(record.get(col))
                if value:
                    response[field_name] = value

        if cols['customer_phone']:
            phone = self._clean_phone(self._clean_text(record.get(cols['customer_phone'])))
            if phone:
                response['customer_phone'] = phone

        if cols['created_at']:
            created = record.get(cols['created_at'])
            if not self._is_blank(created):
                response['created_at'] = created.to_pydatetime() if isinstance(created, pd.Timestamp) else created

        if cols['would_recommend']:
            response['would_recommend'] = self._clean_bool(record.get(cols['would_recommend']))

        return response

    @staticmethod
    def _is_blank(value) -> bool:
        if value is None:
            return True
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    def _clean_text(self, value) -> str:
        if self._is_blank(value):
            return ''
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        return '' if text.lower() == 'nan' else text

    def _clean_number(self, value) -> Optional[float]:
        if self._is_blank(value) or isinstance(value, bool):
            return None
        try:
            number = float(str(value).strip().replace(',', '.'))
        except ValueError:
            return None
        if number != number or number in (float('inf'), float('-inf')):
            return None
        return int(number) if number.is_integer() else number

    def _clean_bool(self, value) -> Optional[bool]:
        if self._is_blank(value):
            return None
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text.endswith('.0'):
            text = text[:-2]
        if text in TRUE_WORDS:
            return True
        if text in FALSE_WORDS:
            return False
        return None

    def _clean_phone(self, phone: str) -> str:
        """
        Clean and normalize phone number.
        Removes spaces, dashes, + signs and the 00 international prefix.
        """
        if not phone:
            return ''

        cleaned = re.sub(r'[^\d+]', '', phone.strip())

        if cleaned.startswith('+'):
            cleaned = cleaned[1:]

        if cleaned.startswith('00'):
            cleaned = cleaned[2:]

        return cleaned

