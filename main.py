import logging

import customtkinter as ctk

# local helpers
from sage_desk.client import SageClient
from sage_desk.config import AppConfig
from sage_desk.controller import SageController, ViewState
from sage_desk.credentials import ConfigStore
from sage_desk.dispatch import BackgroundRunner
from sage_desk.log_config import configure_logging
from sage_desk.model_cache import ModelCache
from sage_desk.storage import JsonFileStore

logger = logging.getLogger(__name__)

NO_MODELS_LABEL = "No models available."
LOADING_LABEL = "Loading models…"


class SettingsDialog(ctk.CTkToplevel):
    """Modal sheet for the account email and API key."""

    def __init__(self, master: "SageApp", account: str, token: str) -> None:
        super().__init__(master)
        self.title("Settings")
        self.geometry("300x220")
        self.resizable(False, False)
        self.master_app = master

        self.account = ctk.StringVar(value=account)
        self.token = ctk.StringVar(value=token)

        ctk.CTkLabel(self, text="Settings", font=ctk.CTkFont(weight="bold")).pack(pady=(10, 5))
        ctk.CTkEntry(self, textvariable=self.account, placeholder_text="Email").pack(
            padx=10, pady=5, fill="x"
        )
        ctk.CTkEntry(self, textvariable=self.token, placeholder_text="API Key", show="*").pack(
            padx=10, pady=5, fill="x"
        )
        ctk.CTkButton(self, text="Save", command=self.save).pack(pady=(5, 10))

        self.protocol("WM_DELETE_WINDOW", self.close)
        # grab only once the window is viewable
        self.after(100, self.grab_set)

    def save(self) -> None:
        token = self.token.get().strip()
        account = self.account.get().strip()
        self.close()
        self.master_app.controller.save_settings(token, account)

    def close(self) -> None:
        self.grab_release()
        self.destroy()
        self.master_app.settings_dialog = None
        self.master_app.controller.close_settings()


class SageApp(ctk.CTk):
    def __init__(self, config: AppConfig) -> None:
        super().__init__()
        self.title("Sage Desk")
        self.geometry("520x420")
        self.settings_dialog: SettingsDialog | None = None

        # ----------  RESPONSE ----------
        self.response_box = ctk.CTkTextbox(self, height=120, wrap="word")
        self.response_box.configure(state="disabled")
        self.response_box.pack(padx=10, pady=(10, 5), fill="both", expand=True)

        # ----------  MODEL PICKER ----------
        self.model_var = ctk.StringVar(value="")
        self.model_menu = ctk.CTkOptionMenu(
            self,
            variable=self.model_var,
            values=[NO_MODELS_LABEL],
            command=self.on_model_selected
        )
        self.model_menu.pack(padx=10, pady=5, fill="x")

        # ----------  PROMPT ----------
        self.prompt_entry = ctk.CTkEntry(self, placeholder_text="Type your prompt here...")
        self.prompt_entry.pack(padx=10, pady=5, fill="x")
        self.prompt_entry.bind("<Return>", lambda _event: self.submit_prompt())

        self.error_label = ctk.CTkLabel(self, text="", text_color="red", wraplength=480)
        self.error_label.pack(padx=10)

        # ----------  BUTTONS ----------
        self.submit_btn = ctk.CTkButton(self, text="Submit Prompt", command=self.submit_prompt)
        self.submit_btn.pack(pady=(5, 5))
        ctk.CTkButton(self, text="Settings", command=self.open_settings).pack(pady=(0, 10))

        # ----------  CORE ----------
        store = JsonFileStore(config.store_path)
        client = SageClient(config)
        self.runner = BackgroundRunner(schedule=self.run_on_ui_thread)
        self.controller = SageController(
            config_store=ConfigStore(store),
            cache=ModelCache(client, store, config),
            client=client,
            runner=self.runner,
            on_change=self.render,
        )
        self.protocol("WM_DELETE_WINDOW", self.on_close)
        self.after(0, self.controller.start)

    # ----------  Utility helpers that schedule updates  ----------
    def run_on_ui_thread(self, callback) -> None:
        """Queue a callback from a worker thread onto the Tk event loop."""
        self.after(0, callback)

    def render(self, state: ViewState) -> None:
        """Push controller state into the widgets.  Runs in the GUI thread."""
        if state.loading_models:
            self.model_menu.configure(values=[LOADING_LABEL], state="disabled")
            self.model_var.set(LOADING_LABEL)
        elif state.models:
            self.model_menu.configure(values=list(state.models), state="normal")
            self.model_var.set(state.selected_model)
        else:
            self.model_menu.configure(values=[NO_MODELS_LABEL], state="disabled")
            self.model_var.set(NO_MODELS_LABEL)

        self.response_box.configure(state="normal")
        self.response_box.delete("1.0", "end")
        self.response_box.insert("1.0", state.response_text)
        self.response_box.configure(state="disabled")

        self.error_label.configure(
            text=f"Error: {state.error_message}" if state.error_message else ""
        )
        self.submit_btn.configure(
            state="disabled" if state.sending else "normal",
            text="Sending…" if state.sending else "Submit Prompt"
        )

        if state.show_settings and self.settings_dialog is None:
            self.settings_dialog = SettingsDialog(
                self, state.credentials.account, state.credentials.token
            )

    # ------------------------------------------------------------------
    def on_model_selected(self, model: str) -> None:
        if model not in (NO_MODELS_LABEL, LOADING_LABEL):
            self.controller.select_model(model)

    def submit_prompt(self) -> None:
        self.controller.submit(self.prompt_entry.get())

    def open_settings(self) -> None:
        self.controller.open_settings()

    def on_close(self) -> None:
        self.runner.shutdown()
        self.destroy()


def main() -> None:
    configure_logging()
    config = AppConfig.from_env()
    logger.info(f"Starting Sage Desk against {config.base_url}, settings in {config.store_path}")
    app = SageApp(config)
    app.mainloop()


# ----------------------------------------------------------------------
if __name__ == "__main__":
    main()
