"""
Booking Service - turns a finished quote into a booking request and records it.

Bookings are appended to bookings.csv. Each booking gets the next sequential
id and a unique 4-digit client number the couple later logs in with.
"""
import csv
import json
import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..data.schemas import BookingConfirmation, BookingRequest
from ..engine.models import Package, Quote
from .discount_service import DiscountService

logger = logging.getLogger(__name__)

CLIENT_ID_MIN = 1000
CLIENT_ID_MAX = 9999


class BookingSubmissionError(ValueError):
    """Raised when a booking request cannot be recorded."""


class BookingService:
    """Records bookings built from calculator quotes."""

    CSV_COLUMNS = [
        'booking_id', 'client_id', 'package_name', 'total_price',
        'discount_code', 'selected_items', 'created_at'
    ]

    def __init__(
        self,
        bookings_csv_path: Path,
        discount_service: Optional[DiscountService] = None,
        rng: Optional[random.Random] = None,
    ):
        self.bookings_csv_path = bookings_csv_path
        self.discount_service = discount_service
        self.rng = rng or random.Random()

    @staticmethod
    def build_request(package: Package, quote: Quote) -> BookingRequest:
        """Serialize the final price and the selection list of a quote."""
        if quote.package_id != package.id:
            raise BookingSubmissionError(
                f"Quote for package {quote.package_id} does not match package {package.id}"
            )
        return BookingRequest(
            package_name=package.name,
            total_price=quote.total,
            discount_code=quote.discount_code,
            selected_items=quote.selected_item_labels(),
        )

    def list_bookings(self) -> list[dict]:
        """List recorded bookings from CSV."""
        if not self.bookings_csv_path.exists():
            return []
        with open(self.bookings_csv_path, 'r', encoding='utf-8', newline='') as f:
            return [row for row in csv.DictReader(f) if row.get('booking_id')]

    def _next_booking_id(self, bookings: list[dict]) -> int:
        return max((int(b['booking_id']) for b in bookings), default=0) + 1

    def _new_client_id(self, bookings: list[dict]) -> str:
        taken = {b['client_id'] for b in bookings}
        if len(taken) >= CLIENT_ID_MAX - CLIENT_ID_MIN + 1:
            raise BookingSubmissionError("No free client numbers left")
        while True:
            candidate = str(self.rng.randint(CLIENT_ID_MIN, CLIENT_ID_MAX))
            if candidate not in taken:
                return candidate

    def submit(self, request: BookingRequest) -> BookingConfirmation:
        """
        Record a booking and return its booking id and client number.

        A discount code on the request is re-validated and its usage
        counted, so a code that ran out meanwhile rejects the booking.
        """
        if request.discount_code and self.discount_service is not None:
            try:
                self.discount_service.validate(request.discount_code)
            except ValueError as e:
                raise BookingSubmissionError(str(e)) from e

        bookings = self.list_bookings()
        booking_id = self._next_booking_id(bookings)
        client_id = self._new_client_id(bookings)

        self._append_booking({
            'booking_id': str(booking_id),
            'client_id': client_id,
            'package_name': request.package_name,
            'total_price': f"{request.total_price:.2f}",
            'discount_code': request.discount_code or '',
            'selected_items': json.dumps(request.selected_items, ensure_ascii=False),
            'created_at': datetime.now().isoformat(timespec='seconds'),
        })

        if request.discount_code and self.discount_service is not None:
            self.discount_service.record_usage(request.discount_code)

        logger.info(
            "Recorded booking %s for client %s (%s, %.2f)",
            booking_id, client_id, request.package_name, request.total_price
        )
        return BookingConfirmation(booking_id=booking_id, client_id=client_id)

    def _append_booking(self, row: dict):
        is_new = not self.bookings_csv_path.exists()
        self.bookings_csv_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.bookings_csv_path, 'a', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            if is_new:
                writer.writeheader()
            writer.writerow(row)
