from __future__ import annotations

from dataclasses import dataclass, field
import streamlit as st


DEFAULT_SITE_URL = "http://localhost:8501"
DEFAULT_LOG_LEVEL = "INFO"


# ---------------------- DATA CLASSES ----------------------

@dataclass
class SupabaseConfig:
    url: str
    anon_key: str  # public key; row level security does the gating


@dataclass
class AppSettings:
    site_url: str = DEFAULT_SITE_URL  # origin auth redirects come back to
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def redirect_url(self) -> str:
        return f"{self.site_url}/"


@dataclass
class AppConfig:
    supabase: SupabaseConfig
    app: AppSettings = field(default_factory=AppSettings)


# ---------------------- LOADING ----------------------

def load_config(secrets=None) -> AppConfig:
    secrets = st.secrets if secrets is None else secrets

    # --- Supabase (required) ---
    supabase_cfg = SupabaseConfig(
        url=secrets["supabase"]["url"],
        anon_key=secrets["supabase"]["anon_key"],
    )

    # --- App (optional section) ---
    app_section = secrets["app"] if "app" in secrets else {}
    site_url = str(app_section.get("site_url") or DEFAULT_SITE_URL).rstrip("/")
    log_level = str(app_section.get("log_level") or DEFAULT_LOG_LEVEL).upper()

    return AppConfig(
        supabase=supabase_cfg,
        app=AppSettings(site_url=site_url, log_level=log_level),
    )
