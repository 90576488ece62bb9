import logging

import streamlit as st

from auth_wrapper import setup_billing_page
from src.auth.login import log_business_activity
from src.billing.exceptions import BillValidationError, PersistenceError
from src.billing.money import format_money
from src.billing.render import line_items_frame, tax_caption
from src.pages.utils.billing_state import get_catalog
from src.pages.utils.invoice_view import render_invoice

logger = logging.getLogger(__name__)

# --- Page Setup ---
user_info, config, session = setup_billing_page("New Bill")
catalog = get_catalog()
cart = session.cart

# --- Session State Initialization ---
if 'current_invoice' not in st.session_state:
    st.session_state.current_invoice = None
if 'bill_error' not in st.session_state:
    st.session_state.bill_error = None

st.title("🧾 New Bill")

# --- Finalized invoice view ---
invoice = st.session_state.current_invoice
if invoice is not None:
    if st.session_state.bill_error:
        st.error(f"❌ {st.session_state.bill_error}")
    render_invoice(invoice, session, config, user_info)
    st.divider()
    back_label = "➕ Create New Bill" if invoice.is_saved else "✏️ Back to Bill"
    if st.button(back_label, use_container_width=True):
        st.session_state.current_invoice = None
        st.session_state.bill_error = None
        st.rerun()
    st.stop()

# --- Customer Details ---
st.subheader("Customer Details")
col1, col2 = st.columns(2)
with col1:
    customer_name = st.text_input("Customer Name", value=cart.customer_name, placeholder="e.g. Ramesh Patel")
with col2:
    customer_phone = st.text_input("Phone Number (Optional)", value=cart.customer_phone, placeholder="e.g. 9876543210")
cart.set_customer(customer_name, customer_phone)

# --- Add Products ---
st.subheader("Add Products")
with st.form("add_item_form", clear_on_submit=True):
    col1, col2, col3 = st.columns([3, 1, 1])
    with col1:
        product = st.selectbox(
            "Product",
            options=catalog.products,
            format_func=lambda p: f"{p.name} ({format_money(p.price, config.currency_symbol)})",
        )
    with col2:
        quantity = st.number_input("Quantity", min_value=1, value=1, step=1)
    with col3:
        custom_rate = st.text_input("Rate (optional)", placeholder=f"{product.price}" if product else "")

    if st.form_submit_button("➕ Add Item", use_container_width=True):
        try:
            session.add_product(product.id, int(quantity), custom_rate or None)
            st.session_state.bill_error = None
        except BillValidationError as e:
            st.session_state.bill_error = str(e)

if st.session_state.bill_error:
    st.error(st.session_state.bill_error)

# --- Bill Items Table ---
if cart.is_empty:
    st.info("No items added yet.")
else:
    for line in cart.lines:
        col1, col2, col3, col4, col5 = st.columns([4, 2, 2, 2, 1])
        col1.write(f"**{line.name}**")
        new_qty = col2.number_input(
            "Qty", min_value=1, value=line.quantity, step=1,
            key=f"qty_{line.line_id}", label_visibility="collapsed",
        )
        if new_qty != line.quantity:
            cart.set_quantity(line.line_id, int(new_qty))
            st.rerun()
        col3.write(format_money(line.unit_price))
        col4.write(format_money(line.amount))
        if col5.button("🗑️", key=f"remove_{line.line_id}"):
            cart.remove_line(line.line_id)
            st.rerun()

    with st.expander("Table view"):
        st.dataframe(line_items_frame(cart.lines).drop(columns=['line_id']), hide_index=True, use_container_width=True)

# --- Totals Section ---
totals = cart.compute_totals()
symbol = config.currency_symbol
st.divider()
st.write(f"Subtotal: **{format_money(totals.subtotal, symbol)}**")
st.write(f"{tax_caption(config)}: **{format_money(totals.tax_amount, symbol)}**")
st.markdown(f"### Grand Total: {format_money(totals.grand_total, symbol)}")

# --- Action Button ---
is_form_valid = bool(customer_name.strip()) and not cart.is_empty
if st.button("✅ Generate Bill", type="primary", disabled=not is_form_valid, use_container_width=True):
    try:
        saved = session.generate_bill(customer_name, customer_phone)
    except BillValidationError as e:
        st.error(f"❌ {e}")
    except PersistenceError as e:
        logger.error(f"Bill not saved for {user_info['username']}: {e}")
        log_business_activity(user_info['user_id'], user_info['username'], 'INVOICE_SAVE_FAILED',
                              target_invoice_no=session.pending_invoice.invoice_number,
                              success=False, error_message=str(e))
        # The bill stays editable; the unsaved invoice can still be saved from the print view
        st.session_state.bill_error = "Failed to save the invoice. Please try again."
        st.session_state.current_invoice = session.pending_invoice
        st.rerun()
    else:
        log_business_activity(user_info['user_id'], user_info['username'], 'INVOICE_CREATED',
                              target_invoice_id=saved.id, target_invoice_no=saved.invoice_number,
                              new_values={'grand_total': str(saved.grand_total), 'lines': len(saved.items)},
                              description=f'Invoice created for "{saved.customer_name}"')
        st.session_state.current_invoice = saved
        st.rerun()
