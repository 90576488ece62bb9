import streamlit as st
from datetime import datetime
from decimal import Decimal

from src.auth.login import check_authentication, show_login_form, show_logout_button, show_user_info
from src.billing.exceptions import PersistenceError
from src.billing.money import format_money
from src.pages.utils.billing_state import get_billing_session, get_config

# --- Page Configuration ---
st.set_page_config(
    page_title="Billing Dashboard",
    page_icon="🛢️",
    layout="centered"
)

config = get_config()

# --- Authentication Check ---
user_info = check_authentication()

if not user_info:
    st.title(config.shop_name)
    st.caption("Groundnut Oil Billing System")
    st.info("🔒 Please log in to create bills, or sign up for a new account.")
    show_login_form()
    st.stop()

show_user_info()
show_logout_button()

# --- Dashboard ---
st.title(config.shop_name)
st.caption("Groundnut Oil Billing System")
st.write(f"Welcome, **{user_info['username']}**")

session = get_billing_session(user_info)

col1, col2 = st.columns(2)
with col1:
    if st.button("🧾 New Bill", use_container_width=True):
        st.switch_page("pages/0_New_Bill.py")
with col2:
    if st.button("📚 History", use_container_width=True):
        st.switch_page("pages/1_Bill_History.py")

if not session.cart.is_empty:
    st.info(f"📝 You have a bill in progress with {len(session.cart)} line(s).")

# --- Today's summary from the stored invoices ---
try:
    invoices = session.history()
except PersistenceError as e:
    st.error(f"❌ {e}")
else:
    today = datetime.now(config.tz).date()
    todays = [inv for inv in invoices if inv.date.astimezone(config.tz).date() == today]
    total = sum((inv.grand_total for inv in todays), Decimal("0"))
    st.divider()
    metric1, metric2 = st.columns(2)
    metric1.metric("Bills today", len(todays))
    metric2.metric("Sales today", format_money(total, config.currency_symbol))

st.caption(f"© {datetime.now(config.tz).year} {config.shop_name}. All Rights Reserved.")
