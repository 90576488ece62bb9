from typing import NamedTuple

import streamlit as st

from src.auth.login import check_authentication, show_logout_button, show_user_info
from src.billing.config import BillingConfig
from src.billing.session import BillingSession
from src.pages.utils.billing_state import get_billing_session, get_config


class BillingPage(NamedTuple):
    """What every billing page needs once the user is logged in"""
    user_info: dict
    config: BillingConfig
    session: BillingSession


def require_login(page_name=None):
    """
    Stop the page unless a user is logged in.

    Returns:
        user_info of the logged-in user
    """
    user_info = check_authentication()
    if user_info:
        return user_info

    target = f" to access {page_name}" if page_name else ""
    st.error(f"🔒 Please log in{target}")
    st.info("👆 Log in from the dashboard page to start billing.")
    if st.button("🏠 Go to Login Page", use_container_width=True):
        st.switch_page("app.py")
    st.stop()


def setup_billing_page(page_title, page_name=None, layout="centered"):
    """
    Configure a billing page: page settings, login gate, sidebar and the
    user's billing session.

    Returns:
        BillingPage for the logged-in user
    """
    st.set_page_config(page_title=page_title, page_icon="🛢️", layout=layout)

    user_info = require_login(page_name or page_title)
    show_user_info()
    show_logout_button()

    return BillingPage(user_info, get_config(), get_billing_session(user_info))
