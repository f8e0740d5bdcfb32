"""Sign-in form state machine.

The controller is driven by three events:

* ``field_changed`` when the user edits the email or password,
* ``submit_requested`` when the submit control is triggered,
* ``response_received`` when the identity service call has completed.

``authenticate`` performs the identity service call itself and never touches
form state, so a UI can run it on a worker thread and hand the outcome back
to ``response_received`` on its own thread. ``submit`` chains the three steps
for callers that are happy to block.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from lists_client.auth import (
    IdentityService,
    IdentityServiceError,
    InvalidCredentialsError,
    is_invalid_credentials,
)
from lists_client.models import (
    Credentials,
    FormPhase,
    FormState,
    InvalidCredentials,
    ServiceError,
    SubmissionOutcome,
    Success,
    UnexpectedFailure,
)
from lists_client.navigation import Navigator

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Please enter both email and password"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
UNEXPECTED_FAILURE_MESSAGE = "Something went wrong. Please try again."
NO_SESSION_MESSAGE = "No session returned"
SIGN_IN_FAILED_MESSAGE = "Sign in failed"

IDENTIFIER_FIELD = "identifier"
SECRET_FIELD = "secret"


class AuthFormController:
    def __init__(
        self,
        identity: IdentityService,
        navigator: Navigator,
        home_path: str = "/",
        on_change: Callable[[FormState], None] | None = None,
    ):
        self._identity = identity
        self._navigator = navigator
        self._home_path = home_path
        self._state = FormState()
        self.on_change = on_change

    @property
    def state(self) -> FormState:
        return replace(self._state)

    @property
    def identifier(self) -> str:
        return self._state.identifier

    @identifier.setter
    def identifier(self, value: str) -> None:
        self.field_changed(IDENTIFIER_FIELD, value)

    @property
    def secret(self) -> str:
        return self._state.secret

    @secret.setter
    def secret(self, value: str) -> None:
        self.field_changed(SECRET_FIELD, value)

    @property
    def error_message(self) -> str:
        return self._state.error_message

    @property
    def is_submitting(self) -> bool:
        return self._state.is_submitting

    @property
    def phase(self) -> FormPhase:
        return self._state.phase

    @property
    def can_submit(self) -> bool:
        return not self._state.is_submitting and self.validate(
            self._state.identifier, self._state.secret
        )

    @staticmethod
    def validate(identifier: str, secret: str) -> bool:
        # Whitespace-only values count as filled in.
        return bool(identifier) and bool(secret)

    def field_changed(self, field: str, value: str) -> None:
        if field == IDENTIFIER_FIELD:
            self._state.identifier = value
        elif field == SECRET_FIELD:
            self._state.secret = value
        else:
            raise ValueError(f"Unknown form field: {field}")
        self._notify()

    def submit_requested(
        self,
        identifier: str | None = None,
        secret: str | None = None,
    ) -> Credentials | None:
        """Start a submission attempt.

        Returns the credentials to send, or ``None`` when no request must be
        issued: either a submission is already in flight or the fields are
        incomplete (in which case the validation message is shown).
        """
        if self._state.is_submitting:
            logger.debug("Ignoring submit while a sign-in request is in flight")
            return None

        if identifier is not None:
            self._state.identifier = identifier
        if secret is not None:
            self._state.secret = secret

        self._state.error_message = ""
        if not self.validate(self._state.identifier, self._state.secret):
            self._state.error_message = VALIDATION_MESSAGE
            self._state.phase = FormPhase.ERROR
            self._notify()
            return None

        self._state.is_submitting = True
        self._state.phase = FormPhase.SUBMITTING
        self._notify()
        return Credentials(identifier=self._state.identifier, secret=self._state.secret)

    def authenticate(self, credentials: Credentials) -> SubmissionOutcome:
        try:
            session = self._identity.sign_in_with_password(
                credentials.identifier, credentials.secret
            )
        except InvalidCredentialsError:
            return InvalidCredentials()
        except IdentityServiceError as exc:
            if is_invalid_credentials(exc.code, exc.message):
                return InvalidCredentials()
            return ServiceError(exc.message or SIGN_IN_FAILED_MESSAGE)
        except Exception:
            logger.exception("Sign-in request failed unexpectedly")
            return UnexpectedFailure()

        if session is None:
            return ServiceError(NO_SESSION_MESSAGE)
        return Success(session)

    def response_received(self, outcome: SubmissionOutcome) -> None:
        if not self._state.is_submitting:
            logger.warning("Dropping sign-in outcome with no submission in flight: %r", outcome)
            return

        self._state.is_submitting = False

        if isinstance(outcome, Success):
            self._state.phase = FormPhase.REDIRECTED
            self._notify()
            self._navigator.navigate(self._home_path, replace_history=True)
            return

        self._state.error_message = self.user_message(outcome)
        self._state.phase = FormPhase.ERROR
        self._notify()

    def submit(
        self,
        identifier: str | None = None,
        secret: str | None = None,
    ) -> SubmissionOutcome | None:
        credentials = self.submit_requested(identifier, secret)
        if credentials is None:
            return None

        outcome = self.authenticate(credentials)
        self.response_received(outcome)
        return outcome

    @staticmethod
    def user_message(outcome: SubmissionOutcome) -> str:
        if isinstance(outcome, InvalidCredentials):
            return INVALID_CREDENTIALS_MESSAGE
        if isinstance(outcome, ServiceError):
            return outcome.message
        if isinstance(outcome, UnexpectedFailure):
            return UNEXPECTED_FAILURE_MESSAGE
        return ""

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)
