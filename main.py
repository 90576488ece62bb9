#!/usr/bin/env python3
"""
Command-Line Interface for billing administration
"""

import argparse
import getpass
import logging
import sys

from src.auth.login import create_user, get_business_activities, init_user_database
from src.billing.config import load_config
from src.billing.exceptions import BillingError
from src.billing.logging_config import setup_logging
from src.billing.money import format_money
from src.billing.storage import SqliteInvoiceStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Administer the billing application.")
    parser.add_argument("--config", help="Path to a billing config JSON file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the invoice and user databases.")

    user_parser = subparsers.add_parser("create-user", help="Create a login account.")
    user_parser.add_argument("username")
    user_parser.add_argument("--role", choices=["user", "admin"], default="user")
    user_parser.add_argument("--password", help="Password (prompted for when omitted).")

    list_parser = subparsers.add_parser("list-invoices", help="Print a user's saved invoices.")
    list_parser.add_argument("user_id", help="Owning user id.")

    activity_parser = subparsers.add_parser("activity", help="Print the business activity log, newest first.")
    activity_parser.add_argument("--type", dest="activity_type", help="Only this activity, e.g. INVOICE_SAVE_FAILED.")
    activity_parser.add_argument("--username", help="Only users whose name contains this text.")
    activity_parser.add_argument("--limit", type=int, default=50)

    return parser


def main(argv=None) -> int:
    """Main function to run billing administration from the command line."""
    setup_logging()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        store = SqliteInvoiceStore(config.invoice_db_path, tz=config.tz, timeout=config.db_timeout)

        if args.command == "init-db":
            init_user_database(config.user_db_path)
            logging.info(f"Databases ready in {config.data_dir}")
            return 0

        if args.command == "create-user":
            password = args.password or getpass.getpass("Password: ")
            init_user_database(config.user_db_path)
            success, result = create_user(args.username, password, args.role, db_path=config.user_db_path)
            if not success:
                logging.error(result)
                return 1
            logging.info(f"Created user '{result['username']}' (id {result['user_id']}, role {result['role']})")
            return 0

        if args.command == "list-invoices":
            for invoice in store.list_invoices(args.user_id):
                print(f"{invoice.date:%d/%m/%Y}  {invoice.invoice_number}  "
                      f"{invoice.customer_name:<24}  {format_money(invoice.grand_total, config.currency_symbol)}")
            return 0

        if args.command == "activity":
            init_user_database(config.user_db_path)
            activities = get_business_activities(args.limit, args.activity_type, args.username,
                                                 db_path=config.user_db_path)
            for activity in activities:
                outcome = "ok" if activity['success'] else f"FAILED: {activity['error_message'] or ''}"
                print(f"{activity['timestamp']}  {activity['activity_type']:<20}  {activity['username'] or '-':<12}  "
                      f"{activity['target_invoice_no'] or '':<24}  {outcome}")
            return 0

    except BillingError as e:
        logging.error(f"An error occurred: {e}")
        return 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
