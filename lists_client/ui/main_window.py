from __future__ import annotations

import logging
import os
import threading

import customtkinter as ctk

from lists_client.auth import AuthManager, build_auth_manager
from lists_client.config import AppSettings, ConfigurationError
from lists_client.controller import AuthFormController
from lists_client.logging_utils import configure_logging
from lists_client.models import FormState
from lists_client.navigation import HistoryNavigator

logger = logging.getLogger(__name__)

ERROR_TEXT_COLOR = "#d14343"


class LoginView(ctk.CTkFrame):
	def __init__(self, parent, controller: AuthFormController):
		super().__init__(parent)
		self._controller = controller
		self._controller.on_change = self._render_state

		ctk.CTkLabel(self, text="Welcome back", font=ctk.CTkFont(size=22, weight="bold")).pack(
			pady=(32, 4)
		)
		ctk.CTkLabel(self, text="Sign in to your account").pack(pady=(0, 20))

		self._identifier_var = ctk.StringVar(value=controller.identifier)
		self._secret_var = ctk.StringVar(value=controller.secret)

		ctk.CTkLabel(self, text="Email").pack(anchor="w", padx=32)
		self._identifier_entry = ctk.CTkEntry(
			self,
			textvariable=self._identifier_var,
			placeholder_text="you@example.com",
		)
		self._identifier_entry.pack(fill="x", padx=32, pady=(2, 10))

		ctk.CTkLabel(self, text="Password").pack(anchor="w", padx=32)
		self._secret_entry = ctk.CTkEntry(
			self,
			textvariable=self._secret_var,
			placeholder_text="Enter your password",
			show="*",
		)
		self._secret_entry.pack(fill="x", padx=32, pady=(2, 10))

		# Role "alert": the label is only packed while there is something to announce.
		self._error_label = ctk.CTkLabel(self, text="", text_color=ERROR_TEXT_COLOR, wraplength=360)

		self._submit_btn = ctk.CTkButton(self, text="Sign in", command=self._submit)
		self._submit_btn.pack(fill="x", padx=32, pady=(10, 32))

		self._identifier_var.trace_add(
			"write",
			lambda *_: self._controller.field_changed("identifier", self._identifier_var.get()),
		)
		self._secret_var.trace_add(
			"write",
			lambda *_: self._controller.field_changed("secret", self._secret_var.get()),
		)
		self._identifier_entry.bind("<Return>", lambda _event: self._submit())
		self._secret_entry.bind("<Return>", lambda _event: self._submit())

		self._render_state(controller.state)
		self._identifier_entry.focus_set()

	def _submit(self):
		credentials = self._controller.submit_requested()
		if credentials is None:
			return

		root = self.winfo_toplevel()

		def worker():
			outcome = self._controller.authenticate(credentials)
			root.after(0, lambda: self._controller.response_received(outcome))

		threading.Thread(target=worker, daemon=True).start()

	def _render_state(self, state: FormState):
		if state.error_message:
			self._error_label.configure(text=state.error_message)
			self._error_label.pack(fill="x", padx=32, pady=(4, 0), before=self._submit_btn)
		else:
			self._error_label.configure(text="")
			self._error_label.pack_forget()

		if state.is_submitting:
			self._submit_btn.configure(text="Signing in...", state="disabled")
		elif self._controller.can_submit:
			self._submit_btn.configure(text="Sign in", state="normal")
		else:
			self._submit_btn.configure(text="Sign in", state="disabled")

	def destroy(self):
		self._controller.on_change = None
		super().destroy()


class HomeView(ctk.CTkFrame):
	def __init__(self, parent, auth_manager: AuthManager, on_signed_out):
		super().__init__(parent)
		self._auth_manager = auth_manager
		self._on_signed_out = on_signed_out

		state = auth_manager.get_auth_state()
		email = state.email or "signed-in user"
		ctk.CTkLabel(self, text="Your lists", font=ctk.CTkFont(size=22, weight="bold")).pack(
			pady=(32, 4)
		)
		self._status_label = ctk.CTkLabel(self, text=f"Signed in as {email}")
		self._status_label.pack(pady=(0, 20))

		self._sign_out_btn = ctk.CTkButton(self, text="Sign out", command=self._sign_out)
		self._sign_out_btn.pack(padx=32, pady=(0, 32))

	def _sign_out(self):
		self._status_label.configure(text="Signing out...")
		self._sign_out_btn.configure(state="disabled")

		root = self.winfo_toplevel()

		def worker():
			self._auth_manager.sign_out()
			root.after(0, self._on_signed_out)

		threading.Thread(target=worker, daemon=True).start()


class MainWindow(ctk.CTk):
	def __init__(self, settings: AppSettings, auth_manager: AuthManager):
		super().__init__()
		self._settings = settings
		self._auth_manager = auth_manager
		self.title("Lists")
		self.geometry("480x520")
		self.minsize(420, 460)

		self._navigator = HistoryNavigator(settings.login_path, on_change=self._show_route)
		self._current_view: ctk.CTkFrame | None = None

		self._show_checking()
		self._restore_session()

	def _show_checking(self):
		self._swap_view(ctk.CTkFrame(self))
		ctk.CTkLabel(self._current_view, text="Checking session...").pack(expand=True)

	def _restore_session(self):
		def worker():
			try:
				session = self._auth_manager.restore_session()
			except Exception:
				logger.exception("Could not restore stored session")
				session = None

			if session is not None:
				self.after(
					0,
					lambda: self._navigator.navigate(self._settings.home_path, replace_history=True),
				)
			else:
				self.after(0, lambda: self._show_route(self._navigator.current))

		threading.Thread(target=worker, daemon=True).start()

	def _show_route(self, route: str):
		if route == self._settings.home_path:
			view = HomeView(self, self._auth_manager, on_signed_out=self._signed_out)
		else:
			controller = AuthFormController(
				identity=self._auth_manager,
				navigator=self._navigator,
				home_path=self._settings.home_path,
			)
			view = LoginView(self, controller)
		self._swap_view(view)

	def _signed_out(self):
		self._navigator.navigate(self._settings.login_path, replace_history=True)

	def _swap_view(self, view: ctk.CTkFrame):
		if self._current_view is not None:
			self._current_view.destroy()
		self._current_view = view
		view.pack(fill="both", expand=True, padx=16, pady=16)


def run_app() -> None:
	ctk.set_appearance_mode("System")
	ctk.set_default_color_theme("blue")

	try:
		settings = AppSettings.from_env()
	except ConfigurationError as exc:
		configure_logging()
		logger.error("Configuration error: %s", exc)
		app = ctk.CTk()
		app.title("Lists - Configuration Error")
		app.geometry("760x360")
		message = ctk.CTkTextbox(app)
		message.pack(fill="both", expand=True, padx=16, pady=16)
		message.insert(
			"1.0",
			"Configuration error. Set required environment variables and restart:\n\n"
			f"{exc}\n\n"
			"Required:\n"
			"- LISTS_SUPABASE_URL\n"
			"- LISTS_SUPABASE_ANON_KEY\n",
		)
		app.mainloop()
		return

	configure_logging(settings.log_level, os.path.dirname(settings.session_cache_path))
	window = MainWindow(settings, build_auth_manager(settings))
	window.mainloop()
