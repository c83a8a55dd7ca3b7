"""
Planner window using customtkinter
"""
from __future__ import annotations

import logging
import queue
import threading
import tkinter as tk
from datetime import date
from tkinter import filedialog, messagebox

import customtkinter as ctk

from .ai import PlanGenerator
from .cli import open_settings_store
from .config import RuntimeConfig, build_generator
from .controller import ERROR_HEADING, PlannerController, PlanRequest
from .display import appearance_mode, category_style, progress_label
from .errors import FormValidationError, PlanRequestInProgress
from .form import PreferenceForm
from .ics import ICS_FILENAME, ICS_MIME_TYPE, write_ics
from .models import MOODS, AppSettings, PlanLevel, ScheduleItem, ThemeMode
from .settings import SettingsStore
from .share import NOT_SUPPORTED_MESSAGE, SHARE_FAILED_MESSAGE, SHARE_TITLE, share_plan

logger = logging.getLogger(__name__)

_MOOD_LABELS = {f"{mood.emoji} {mood.label}": mood.value for mood in MOODS}
_THEME_LABELS = {"Light": ThemeMode.LIGHT, "Dark": ThemeMode.DARK, "System": ThemeMode.SYSTEM}


class SettingsDialog(ctk.CTkToplevel):
    """Settings editor. Every change is saved immediately."""

    def __init__(self, parent, store: SettingsStore):
        super().__init__(parent)
        self.store = store
        self.title("Settings")
        self.geometry("420x420")
        self.resizable(False, False)
        self.transient(parent)

        current = store.current
        self.name_var = ctk.StringVar(value=current.user_name)
        self.wake_var = ctk.StringVar(value=current.default_wake_time)
        self.bed_var = ctk.StringVar(value=current.default_bed_time)
        theme_label = next(label for label, mode in _THEME_LABELS.items() if mode == current.theme)
        self.theme_var = ctk.StringVar(value=theme_label)
        self.error_var = ctk.StringVar(value="")

        self._create_ui()

    def _create_ui(self):
        ctk.CTkLabel(
            self,
            text="⚙️  Settings",
            font=ctk.CTkFont(size=22, weight="bold"),
        ).pack(anchor="w", padx=20, pady=(20, 10))

        body = ctk.CTkFrame(self, fg_color="transparent")
        body.pack(fill="both", expand=True, padx=20)
        body.columnconfigure(1, weight=1)

        rows = (
            ("Your name", self.name_var),
            ("Default wake time", self.wake_var),
            ("Default bedtime", self.bed_var),
        )
        for row, (label, var) in enumerate(rows):
            ctk.CTkLabel(body, text=label).grid(row=row, column=0, sticky="w", pady=6)
            entry = ctk.CTkEntry(body, textvariable=var)
            entry.grid(row=row, column=1, sticky="ew", padx=(12, 0), pady=6)
            entry.bind("<FocusOut>", lambda _event: self._save_fields())
            entry.bind("<Return>", lambda _event: self._save_fields())

        ctk.CTkLabel(body, text="Theme").grid(row=len(rows), column=0, sticky="w", pady=6)
        ctk.CTkSegmentedButton(
            body,
            values=list(_THEME_LABELS),
            variable=self.theme_var,
            command=self._save_theme,
        ).grid(row=len(rows), column=1, sticky="ew", padx=(12, 0), pady=6)

        ctk.CTkLabel(self, textvariable=self.error_var, text_color="#dc2626", wraplength=380).pack(
            padx=20, pady=(10, 0)
        )
        ctk.CTkButton(self, text="Done", command=self._close, width=120).pack(pady=20)
        self.protocol("WM_DELETE_WINDOW", self._close)

    def _save_fields(self) -> None:
        changes = {
            "user_name": self.name_var.get().strip(),
            "default_wake_time": self.wake_var.get().strip(),
            "default_bed_time": self.bed_var.get().strip(),
        }
        current = self.store.current
        if all(getattr(current, key) == value for key, value in changes.items()):
            self.error_var.set("")
            return
        try:
            self.store.update(**changes)
        except FormValidationError as exc:
            self.error_var.set(str(exc))
            return
        self.error_var.set("")

    def _save_theme(self, label: str) -> None:
        self.store.update(theme=_THEME_LABELS[label])

    def _close(self) -> None:
        self._save_fields()
        self.destroy()


class DailyFlowApp(ctk.CTk):
    """Main planner window"""

    def __init__(
        self,
        runtime_config: RuntimeConfig,
        settings_store: SettingsStore | None = None,
        generator: PlanGenerator | None = None,
    ):
        super().__init__()
        self.runtime_config = runtime_config
        self.settings_store = settings_store or open_settings_store(runtime_config)
        self.controller = PlannerController(
            self.settings_store,
            generator or build_generator(runtime_config),
        )
        self.form = PreferenceForm(self.settings_store.current)
        self.events: queue.Queue[tuple[str, object]] = queue.Queue()
        self._settings_dialog: SettingsDialog | None = None
        self._unsubscribe = self.settings_store.subscribe(self._on_settings_changed)

        self.title("Goal - Optimize your day")
        self.geometry("900x860")
        self.minsize(640, 640)
        ctk.set_appearance_mode(appearance_mode(self.settings_store.current.theme))
        ctk.set_default_color_theme("blue")

        draft = self.form.draft
        self.wake_var = ctk.StringVar(value=draft.wake_time)
        self.bed_var = ctk.StringVar(value=draft.bed_time)
        self.level_var = ctk.StringVar(value=draft.level.value)
        self.mood_var = ctk.StringVar(value=_mood_label(draft.mood))
        self.progress_var = ctk.StringVar(value=f"{draft.goal_progress}%")
        self.form_error_var = ctk.StringVar(value="")
        self.error_var = ctk.StringVar(value="")
        self.status_var = ctk.StringVar(value=f"© {date.today().year} Goal. Optimize your day.")

        self._create_ui()
        self._render()
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(250, self._drain_events)

    def _create_ui(self):
        """Create the main layout"""
        self.top_bar = ctk.CTkFrame(self, height=56, corner_radius=0)
        self.top_bar.pack(fill="x")

        title_label = ctk.CTkLabel(
            self.top_bar,
            text="\U0001f30d Goal",
            font=ctk.CTkFont(size=22, weight="bold"),
            cursor="hand2",
        )
        title_label.pack(side="left", padx=20, pady=12)
        title_label.bind("<Button-1>", lambda _event: self._reset())

        ctk.CTkButton(
            self.top_bar,
            text="⚙️  Settings",
            command=self._show_settings,
            width=110,
            fg_color="gray",
        ).pack(side="right", padx=20)

        self.banner = ctk.CTkFrame(self, fg_color=("#fef2f2", "#2a1010"), border_color="#fecaca", border_width=1)
        ctk.CTkLabel(
            self.banner,
            text=ERROR_HEADING,
            text_color=("#b91c1c", "#f87171"),
            font=ctk.CTkFont(size=14, weight="bold"),
        ).grid(row=0, column=0, sticky="w", padx=16, pady=(10, 0))
        ctk.CTkLabel(
            self.banner,
            textvariable=self.error_var,
            text_color=("#b91c1c", "#f87171"),
            wraplength=720,
            justify="left",
        ).grid(row=1, column=0, sticky="w", padx=16, pady=(0, 10))
        ctk.CTkButton(
            self.banner,
            text="✕",
            width=28,
            fg_color="transparent",
            text_color=("#b91c1c", "#f87171"),
            hover=False,
            command=self._dismiss_error,
        ).grid(row=0, column=1, rowspan=2, padx=8)
        self.banner.columnconfigure(0, weight=1)

        self.content = ctk.CTkFrame(self, fg_color="transparent")
        self.content.pack(fill="both", expand=True, padx=20, pady=10)

        self.form_view = ctk.CTkScrollableFrame(self.content)
        self._build_form_view(self.form_view)
        self.plan_view = ctk.CTkScrollableFrame(self.content)

        ctk.CTkLabel(self, textvariable=self.status_var, text_color="gray").pack(pady=(0, 10))

    def _build_form_view(self, root) -> None:
        ctk.CTkLabel(
            root,
            text="Design Your Day",
            font=ctk.CTkFont(size=24, weight="bold"),
        ).pack(anchor="w", padx=15, pady=(15, 2))
        ctk.CTkLabel(
            root,
            text="Tell us about your goal and we'll build a schedule around your energy.",
            text_color="gray",
        ).pack(anchor="w", padx=15, pady=(0, 15))

        times = ctk.CTkFrame(root, fg_color="transparent")
        times.pack(fill="x", padx=15, pady=5)
        times.columnconfigure((0, 1), weight=1)
        ctk.CTkLabel(times, text="Wake up time").grid(row=0, column=0, sticky="w")
        ctk.CTkLabel(times, text="Bedtime").grid(row=0, column=1, sticky="w", padx=(12, 0))
        ctk.CTkEntry(times, textvariable=self.wake_var).grid(row=1, column=0, sticky="ew")
        ctk.CTkEntry(times, textvariable=self.bed_var).grid(row=1, column=1, sticky="ew", padx=(12, 0))

        ctk.CTkLabel(root, text="Main goal for today").pack(anchor="w", padx=15, pady=(12, 2))
        self.goal_text = ctk.CTkTextbox(root, height=80)
        self.goal_text.pack(fill="x", padx=15)

        ctk.CTkLabel(root, text="Structure level").pack(anchor="w", padx=15, pady=(12, 2))
        ctk.CTkOptionMenu(
            root,
            values=[level.value for level in PlanLevel],
            variable=self.level_var,
        ).pack(anchor="w", padx=15)

        ctk.CTkLabel(root, text="How are you feeling?").pack(anchor="w", padx=15, pady=(12, 2))
        ctk.CTkSegmentedButton(
            root,
            values=list(_MOOD_LABELS),
            variable=self.mood_var,
        ).pack(fill="x", padx=15)

        progress_row = ctk.CTkFrame(root, fg_color="transparent")
        progress_row.pack(fill="x", padx=15, pady=(12, 2))
        ctk.CTkLabel(progress_row, text="Goal progress").pack(side="left")
        ctk.CTkLabel(progress_row, textvariable=self.progress_var, font=ctk.CTkFont(weight="bold")).pack(
            side="right"
        )
        self.progress_slider = ctk.CTkSlider(
            root,
            from_=0,
            to=100,
            number_of_steps=100,
            command=lambda value: self.progress_var.set(f"{int(value)}%"),
        )
        self.progress_slider.set(self.form.draft.goal_progress)
        self.progress_slider.pack(fill="x", padx=15)

        ctk.CTkLabel(root, textvariable=self.form_error_var, text_color="#dc2626").pack(
            anchor="w", padx=15, pady=(8, 0)
        )
        self.submit_button = ctk.CTkButton(
            root,
            text="Generate My Plan",
            command=self._submit,
            height=40,
            font=ctk.CTkFont(size=15, weight="bold"),
        )
        self.submit_button.pack(fill="x", padx=15, pady=(8, 15))

    def _render(self) -> None:
        if self.controller.error:
            self.error_var.set(self.controller.error)
            self.banner.pack(fill="x", padx=20, pady=(10, 0), before=self.content)
        else:
            self.banner.pack_forget()

        if self.controller.showing_plan:
            self.form_view.pack_forget()
            self._render_plan()
            self.plan_view.pack(fill="both", expand=True)
        else:
            self.plan_view.pack_forget()
            self.form_view.pack(fill="both", expand=True)

        if self.controller.loading:
            self.submit_button.configure(state="disabled", text="⏳ Designing your day...")
        else:
            self.submit_button.configure(state="normal", text="Generate My Plan")

    def _render_plan(self) -> None:
        for widget in self.plan_view.winfo_children():
            widget.destroy()
        plan = self.controller.plan
        if plan is None:
            return

        header = ctk.CTkFrame(self.plan_view, corner_radius=14)
        header.pack(fill="x", padx=5, pady=(5, 15))
        ctk.CTkLabel(
            header,
            text="Your Personalized Flow",
            font=ctk.CTkFont(size=22, weight="bold"),
        ).pack(pady=(15, 4))
        ctk.CTkLabel(
            header,
            text=f"“{plan.quote}”",
            font=ctk.CTkFont(size=13, slant="italic"),
            text_color="gray",
            wraplength=700,
        ).pack(padx=15)

        label = progress_label(self.controller.current_prefs)
        if label is not None and self.controller.current_prefs is not None:
            ctk.CTkLabel(header, text=label, font=ctk.CTkFont(size=11, weight="bold")).pack(pady=(10, 2))
            bar = ctk.CTkProgressBar(header, width=320)
            bar.set(self.controller.current_prefs.goal_progress / 100)
            bar.pack()

        summary = ctk.CTkFrame(header, corner_radius=10)
        summary.pack(fill="x", padx=15, pady=15)
        ctk.CTkLabel(summary, text="FOCUS SUMMARY", text_color="gray", font=ctk.CTkFont(size=11)).pack(
            anchor="w", padx=12, pady=(8, 0)
        )
        ctk.CTkLabel(summary, text=plan.focus_summary, wraplength=680, justify="left").pack(
            anchor="w", padx=12, pady=(2, 10)
        )

        dark = ctk.get_appearance_mode() == "Dark"
        for item in plan.schedule:
            self._create_timeline_card(item, dark)

        actions = ctk.CTkFrame(self.plan_view, fg_color="transparent")
        actions.pack(pady=20)
        ctk.CTkButton(actions, text="\U0001f514 Alarms", command=self._export_calendar, width=130).grid(
            row=0, column=0, padx=6
        )
        ctk.CTkButton(actions, text="\U0001f517 Share", command=self._share, width=130).grid(
            row=0, column=1, padx=6
        )
        ctk.CTkButton(
            actions,
            text="Create New Plan",
            command=self._reset,
            height=40,
            font=ctk.CTkFont(weight="bold"),
        ).grid(row=1, column=0, columnspan=2, sticky="ew", padx=6, pady=(12, 0))

    def _create_timeline_card(self, item: ScheduleItem, dark: bool) -> None:
        style = category_style(item.category, dark)

        row = ctk.CTkFrame(self.plan_view, fg_color="transparent")
        row.pack(fill="x", padx=5, pady=6)
        ctk.CTkFrame(
            row,
            width=14,
            height=14,
            corner_radius=7,
            fg_color=style.dot,
            border_color=style.border,
            border_width=2,
        ).pack(side="left", anchor="n", padx=(4, 12), pady=20)

        card = ctk.CTkFrame(
            row,
            corner_radius=12,
            fg_color=style.background,
            border_color=style.border,
            border_width=2 if style.dashed else 1,
        )
        card.pack(side="left", fill="x", expand=True)

        top = ctk.CTkFrame(card, fg_color="transparent")
        top.pack(fill="x", padx=15, pady=(10, 0))
        ctk.CTkLabel(top, text=item.time, text_color=style.foreground, font=ctk.CTkFont(family="Courier", size=12)).pack(
            side="left"
        )
        ctk.CTkLabel(
            top,
            text=item.category.value.upper(),
            text_color=style.foreground,
            font=ctk.CTkFont(size=10, weight="bold"),
        ).pack(side="right")

        ctk.CTkLabel(
            card,
            text=item.activity,
            text_color=style.foreground,
            font=ctk.CTkFont(size=17, weight="bold"),
        ).pack(anchor="w", padx=15, pady=(4, 2))
        ctk.CTkLabel(
            card,
            text=item.description,
            text_color=style.foreground,
            wraplength=640,
            justify="left",
        ).pack(anchor="w", padx=15)
        ctk.CTkLabel(
            card,
            text=f"⚡ {item.tip}",
            text_color=style.foreground,
            font=ctk.CTkFont(size=12, slant="italic"),
            wraplength=640,
            justify="left",
        ).pack(anchor="w", padx=15, pady=(6, 12))

    def _read_form(self) -> None:
        self.form.set_wake_time(self.wake_var.get())
        self.form.set_bed_time(self.bed_var.get())
        self.form.set_goal(self.goal_text.get("1.0", "end-1c"))
        self.form.set_level(self.level_var.get())
        self.form.select_mood(_MOOD_LABELS.get(self.mood_var.get(), self.form.draft.mood))
        self.form.set_progress(self.progress_slider.get())

    def _submit(self) -> None:
        self._read_form()
        try:
            prefs = self.form.submit()
        except FormValidationError as exc:
            self.form_error_var.set(str(exc))
            return
        self.form_error_var.set("")

        try:
            request = self.controller.start_request(prefs)
        except PlanRequestInProgress:
            return
        self._render()

        def _worker(request: PlanRequest = request) -> None:
            try:
                plan = self.controller.execute(request)
                self.events.put(("plan_done", (request, plan)))
            except Exception as exc:  # noqa: BLE001
                self.events.put(("plan_error", (request, exc)))

        threading.Thread(target=_worker, name="dailyflow-plan", daemon=True).start()

    def _drain_events(self) -> None:
        drained = False
        while True:
            try:
                kind, payload = self.events.get_nowait()
            except queue.Empty:
                break

            request, result = payload
            drained = True
            # stale results still free the request slot
            if kind == "plan_done":
                self.controller.complete_request(request, plan=result)
            elif kind == "plan_error":
                self.controller.complete_request(request, error=result)

        if drained:
            self._render()
        self.after(250, self._drain_events)

    def _dismiss_error(self) -> None:
        self.controller.dismiss_error()
        self._render()

    def _reset(self) -> None:
        self.controller.reset()
        self._render()

    def _export_calendar(self) -> None:
        plan = self.controller.plan
        if plan is None:
            return
        target = filedialog.asksaveasfilename(
            title="Export schedule as calendar",
            defaultextension=".ics",
            initialfile=ICS_FILENAME,
            filetypes=[(f"iCalendar ({ICS_MIME_TYPE})", "*.ics"), ("All files", "*.*")],
        )
        if not target:
            return
        try:
            path = write_ics(plan, target)
        except OSError as exc:
            messagebox.showerror("Export failed", str(exc))
            return
        self.status_var.set(f"Calendar saved to {path}")

    def _share(self) -> None:
        plan = self.controller.plan
        if plan is None:
            return
        if not self._clipboard_available():
            messagebox.showwarning(SHARE_TITLE, NOT_SUPPORTED_MESSAGE)
            return
        if share_plan(plan, self._copy_to_clipboard):
            self.status_var.set("Plan copied to the clipboard.")
        else:
            messagebox.showwarning(SHARE_TITLE, SHARE_FAILED_MESSAGE)

    def _clipboard_available(self) -> bool:
        try:
            return str(self.tk.call("tk", "windowingsystem")) in {"win32", "aqua", "x11"}
        except tk.TclError:
            return False

    def _copy_to_clipboard(self, title: str, text: str) -> None:
        self.clipboard_clear()
        self.clipboard_append(f"{title}\n\n{text}")
        self.update()

    def _show_settings(self) -> None:
        if self._settings_dialog is not None and self._settings_dialog.winfo_exists():
            self._settings_dialog.focus()
            return
        self._settings_dialog = SettingsDialog(self, self.settings_store)

    def _on_settings_changed(self, settings: AppSettings) -> None:
        self.form.apply_settings(settings)
        self.wake_var.set(settings.default_wake_time)
        self.bed_var.set(settings.default_bed_time)
        ctk.set_appearance_mode(appearance_mode(settings.theme))
        if self.controller.showing_plan:
            self._render_plan()

    def _on_close(self) -> None:
        self._unsubscribe()
        self.destroy()


def _mood_label(value: str) -> str:
    for label, mood in _MOOD_LABELS.items():
        if mood == value:
            return label
    return next(iter(_MOOD_LABELS))
