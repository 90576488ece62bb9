import logging

import streamlit as st

from src.billing.catalog import Catalog, load_catalog
from src.billing.config import BillingConfig, load_config
from src.billing.logging_config import setup_logging
from src.billing.numbering import InvoiceNumberGenerator
from src.billing.session import BillingSession
from src.billing.storage import SqliteInvoiceStore


@st.cache_resource
def get_config() -> BillingConfig:
    setup_logging()
    config = load_config()
    logging.getLogger(__name__).info(f"Billing configured: tax {config.tax_rate}, data in {config.data_dir}")
    return config


@st.cache_resource
def get_catalog() -> Catalog:
    return load_catalog(get_config().catalog_file)


@st.cache_resource
def get_store() -> SqliteInvoiceStore:
    config = get_config()
    return SqliteInvoiceStore(config.invoice_db_path, tz=config.tz, timeout=config.db_timeout)


@st.cache_resource
def get_numbering() -> InvoiceNumberGenerator:
    # One generator per process so every browser session draws from the same sequence
    return InvoiceNumberGenerator(get_config().invoice_prefix)


def get_billing_session(user_info: dict) -> BillingSession:
    """
    Return the working bill of the logged-in user, creating it on first use.

    The session lives in st.session_state, so it survives reruns of the page and
    is dropped on logout.
    """
    user_id = str(user_info['user_id'])
    session = st.session_state.get('billing_session')
    if session is None or session.user_id != user_id:
        session = BillingSession(
            user_id=user_id,
            catalog=get_catalog(),
            store=get_store(),
            config=get_config(),
            numbering=get_numbering(),
        )
        st.session_state.billing_session = session
    return session
