# db/database.py

from collections import OrderedDict
from typing import MutableMapping
import logging

from supabase import Client, ClientOptions, create_client
from supabase_auth import SyncMemoryStorage
import streamlit as st

logger = logging.getLogger(__name__)

MAX_PENDING_VERIFIERS = 1000


def get_supabase_client() -> Client:
    """
    Returns the Supabase client of the current browser session.

    The client holds the signed-in user's tokens, so it is kept in
    st.session_state (one per visitor) and never shared through a cache.
    Uses the public anon key: row level security decides what a user may read
    and book.
    """

    if "supabase_client" not in st.session_state:
        url = st.secrets["supabase"]["url"]
        key = st.secrets["supabase"]["anon_key"]
        storage = SyncMemoryStorage()
        # PKCE so the OAuth redirect comes back with ?code= the server can read
        options = ClientOptions(flow_type="pkce", storage=storage)
        st.session_state.supabase_auth_storage = storage
        st.session_state.supabase_client = create_client(url, key, options=options)
        logger.debug("Created Supabase client for %s", url)

    return st.session_state.supabase_client


def get_auth_storage() -> SyncMemoryStorage:
    get_supabase_client()
    return st.session_state.supabase_auth_storage


class BoundedStore(OrderedDict):
    """Insertion-ordered dict that forgets its oldest entries past maxsize."""

    def __init__(self, maxsize: int = MAX_PENDING_VERIFIERS):
        super().__init__()
        self.maxsize = maxsize

    def __setitem__(self, key, value):
        super().__setitem__(key, value)
        while len(self) > self.maxsize:
            self.popitem(last=False)


@st.cache_resource
def get_verifier_store() -> MutableMapping[str, str]:
    """PKCE code verifiers waiting for their OAuth redirect, process-wide."""
    return BoundedStore()
