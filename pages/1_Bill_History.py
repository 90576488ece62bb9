import streamlit as st

from auth_wrapper import setup_billing_page
from src.billing import history
from src.billing.exceptions import PersistenceError
from src.pages.utils.invoice_view import render_invoice

# --- Page Setup ---
user_info, config, session = setup_billing_page("Bill History")

if 'history_invoice_id' not in st.session_state:
    st.session_state.history_invoice_id = None

st.title("📚 Invoice History")

try:
    with st.spinner("Loading history..."):
        invoices = session.history()
except PersistenceError as e:
    st.error(f"❌ Failed to fetch invoice history. {e}")
    st.stop()

# --- Single invoice view ---
selected_id = st.session_state.history_invoice_id
if selected_id:
    selected = next((inv for inv in invoices if inv.id == selected_id), None)
    if selected is None:
        st.warning("Invoice not found.")
    else:
        render_invoice(selected, session, config, user_info)
    st.divider()
    if st.button("⬅️ Back to History", use_container_width=True):
        st.session_state.history_invoice_id = None
        st.rerun()
    st.stop()

# --- History table ---
search_term = st.text_input("🔍 Search", placeholder="Customer name, phone or invoice number")
matches = history.search(invoices, search_term)

if not matches:
    st.info("No invoices found.")
    st.stop()

table = history.summarize(matches)
st.dataframe(
    table.drop(columns=['id']),
    hide_index=True,
    use_container_width=True,
    column_config={
        'Amount': st.column_config.NumberColumn(f"Amount ({config.currency_symbol})", format="%.2f"),
    },
)

labels = {inv.id: f"{inv.invoice_number} · {inv.customer_name}" for inv in matches}
choice = st.selectbox("Open invoice", options=list(labels), format_func=labels.get)
if st.button("👁️ View", use_container_width=True):
    st.session_state.history_invoice_id = choice
    st.rerun()
