import logging

import streamlit as st

from src.auth.login import log_business_activity
from src.billing.config import BillingConfig
from src.billing.exceptions import PersistenceError
from src.billing.models import Invoice
from src.billing.money import format_money
from src.billing.render import export_invoice_xlsx, line_items_frame, tax_caption
from src.billing.session import BillingSession

logger = logging.getLogger(__name__)


def render_invoice(invoice: Invoice, session: BillingSession, config: BillingConfig, user_info: dict):
    """
    Display a finalized invoice with its print (download) action.

    Stored totals are shown as they are; a pending invoice is saved before the
    printable file is offered.
    """
    st.subheader(f"🧾 {config.shop_name}")
    col1, col2 = st.columns(2)
    with col1:
        st.write(f"**Billed To:** {invoice.customer_name}")
        if invoice.customer_phone:
            st.write(f"**Phone:** {invoice.customer_phone}")
    with col2:
        st.write(f"**Invoice #:** `{invoice.invoice_number}`")
        st.write(f"**Date:** {invoice.date.strftime('%d/%m/%Y')}")

    frame = line_items_frame(invoice.items).drop(columns=['line_id'])
    st.dataframe(frame, hide_index=True, use_container_width=True)

    symbol = config.currency_symbol
    st.write(f"Subtotal: **{format_money(invoice.subtotal, symbol)}**")
    st.write(f"{tax_caption(config, invoice)}: **{format_money(invoice.tax_amount, symbol)}**")
    st.markdown(f"### Grand Total: {format_money(invoice.grand_total, symbol)}")

    if not invoice.is_saved:
        st.warning("⚠️ This invoice has not been saved yet. It will be saved before printing.")
        if st.button("💾 Save & Prepare Print", use_container_width=True):
            try:
                invoice = session.prepare_print(invoice)
            except PersistenceError as e:
                logger.error(f"Print blocked for {invoice.invoice_number}: {e}")
                st.error(f"❌ {e}")
                return
            st.session_state.current_invoice = invoice
            st.session_state.bill_error = None
            log_business_activity(user_info['user_id'], user_info['username'], 'INVOICE_CREATED',
                                  target_invoice_id=invoice.id,
                                  target_invoice_no=invoice.invoice_number,
                                  description=f'Invoice saved before printing for "{invoice.customer_name}"')
            st.rerun()
        return

    st.download_button(
        "🖨️ Download Printable Invoice (.xlsx)",
        data=export_invoice_xlsx(invoice, config),
        file_name=f"{invoice.invoice_number}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        use_container_width=True,
    )
