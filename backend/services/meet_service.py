"""Online meeting provisioning through Google Calendar and Meet.

Provisioning never raises: callers get a ``MeetingResult`` that either holds
the joinable link or the ``ProvisioningError`` explaining why there is none.
"""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import google_auth_httplib2
import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from backend.core import config
from backend.core.errors import FormatError, ProvisioningError
from backend.scheduling.time_utils import parse_date, parse_time_of_day

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = ['https://www.googleapis.com/auth/calendar']
_EMAIL = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


@dataclass(frozen=True)
class MeetingRequest:
    date: str
    start: str
    end: str
    attendee_emails: tuple[str, ...]
    title: str
    notes: str | None = None


@dataclass(frozen=True)
class MeetingResult:
    link: str | None = None
    event_id: str | None = None
    error: ProvisioningError | None = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.link)

    @classmethod
    def success(cls, link: str, event_id: str | None = None) -> 'MeetingResult':
        return cls(link=link, event_id=event_id)

    @classmethod
    def failure(cls, message: str, detail: str | None = None) -> 'MeetingResult':
        return cls(error=ProvisioningError(message, detail))


def validate_meeting_request(request: MeetingRequest) -> None:
    """Reject malformed input before any call leaves the process."""
    try:
        parse_date(request.date)
        start = parse_time_of_day(request.start)
        end = parse_time_of_day(request.end)
    except FormatError as exc:
        raise ProvisioningError('Failed to generate online meeting link', exc.detail) from exc

    if end <= start:
        raise ProvisioningError('Failed to generate online meeting link', 'End time must be after start time')

    if not request.attendee_emails:
        raise ProvisioningError('Failed to generate online meeting link', 'At least one attendee is required')
    for email in request.attendee_emails:
        if not email or not _EMAIL.match(email):
            raise ProvisioningError('Failed to generate online meeting link', f'Invalid attendee email: {email!r}')


class MeetingProvisioner(ABC):
    """Creates (and on rollback removes) an external meeting."""

    def provision(self, request: MeetingRequest) -> MeetingResult:
        try:
            validate_meeting_request(request)
        except ProvisioningError as exc:
            return MeetingResult(error=exc)
        return self.create_meeting(request)

    @abstractmethod
    def create_meeting(self, request: MeetingRequest) -> MeetingResult:
        ...

    def release(self, result: MeetingResult) -> None:
        """Best-effort removal of a meeting whose booking did not commit."""


class GoogleMeetProvisioner(MeetingProvisioner):

    def __init__(
        self,
        calendar_id: str | None = None,
        time_zone: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.calendar_id = calendar_id or config.GOOGLE_CALENDAR_ID
        self.time_zone = time_zone or config.MEET_TIME_ZONE
        self.timeout = timeout or config.MEET_TIMEOUT_SECONDS

    def _credentials(self) -> Credentials:
        if not config.GOOGLE_CALENDAR_REFRESH_TOKEN:
            raise ProvisioningError(
                'Failed to generate online meeting link',
                'Google Calendar refresh token not configured.',
            )
        return Credentials(
            token=None,
            refresh_token=config.GOOGLE_CALENDAR_REFRESH_TOKEN,
            client_id=config.GOOGLE_CLIENT_ID,
            client_secret=config.GOOGLE_CLIENT_SECRET,
            token_uri=config.GOOGLE_TOKEN_URI,
            scopes=CALENDAR_SCOPES,
        )

    def _service(self):
        http = google_auth_httplib2.AuthorizedHttp(
            self._credentials(),
            http=httplib2.Http(timeout=self.timeout),
        )
        return build('calendar', 'v3', http=http, cache_discovery=False)

    def build_event(self, request: MeetingRequest) -> dict:
        return {
            'summary': request.title,
            'description': request.notes or '',
            'start': {'dateTime': f'{request.date}T{request.start}:00', 'timeZone': self.time_zone},
            'end': {'dateTime': f'{request.date}T{request.end}:00', 'timeZone': self.time_zone},
            'attendees': [{'email': email} for email in request.attendee_emails],
            'conferenceData': {
                'createRequest': {
                    'requestId': f'meet-{uuid.uuid4().hex}',
                    'conferenceSolutionKey': {'type': 'hangoutsMeet'},
                },
            },
        }

    def create_meeting(self, request: MeetingRequest) -> MeetingResult:
        logger.info(
            'Creating Google Meet event on %s %s-%s for %s',
            request.date,
            request.start,
            request.end,
            ', '.join(request.attendee_emails),
        )
        try:
            event = self._service().events().insert(
                calendarId=self.calendar_id,
                body=self.build_event(request),
                conferenceDataVersion=1,
            ).execute()
        except ProvisioningError as exc:
            return MeetingResult(error=exc)
        except HttpError as exc:
            logger.error('Google Calendar API error: %s', exc)
            return MeetingResult.failure('Failed to generate online meeting link', str(exc))
        except (GoogleAuthError, httplib2.HttpLib2Error, OSError) as exc:
            # socket timeouts land here as OSError
            logger.error('Google Calendar request failed: %s', exc)
            return MeetingResult.failure('Failed to generate online meeting link', str(exc) or type(exc).__name__)

        link = event.get('hangoutLink')
        if not link:
            return MeetingResult.failure(
                'Failed to generate online meeting link',
                'Google Meet link not generated in response',
            )

        logger.info('Google Meet link generated for event %s', event.get('id'))
        return MeetingResult.success(link, event.get('id'))

    def release(self, result: MeetingResult) -> None:
        if not result.event_id:
            return
        try:
            self._service().events().delete(calendarId=self.calendar_id, eventId=result.event_id).execute()
        except (ProvisioningError, HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError):
            logger.warning('Could not remove orphaned Google Meet event %s', result.event_id, exc_info=True)


def get_meeting_provisioner() -> MeetingProvisioner:
    return GoogleMeetProvisioner()
