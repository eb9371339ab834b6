"""
Seed a demo portfolio: one owner, two properties with mortgages,
revenues, expenses and CCA settings.
"""
import sys
import os
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backoffice.calculations.amortization import calculate_payment
from backoffice.db.database import get_db_context, init_db
from backoffice.db.models import (
    DepreciationInfo,
    Expense,
    Mortgage,
    Property,
    PropertyUnit,
    Revenue,
    User,
)

DEMO_EMAIL = "demo@example.com"


def build_mortgage(property_id, lender, principal, rate, start_date):
    return Mortgage(
        property_id=property_id,
        lender=lender,
        principal=principal,
        rate_annual=rate,
        term_months=60,
        amortization_months=300,
        start_date=start_date,
        payment_frequency=12,
        payment_amount=calculate_payment(principal, rate, 300, 12),
    )


def main():
    init_db()

    with get_db_context() as db:
        if db.query(User).filter(User.email == DEMO_EMAIL).first():
            print(f"Demo user {DEMO_EMAIL} already exists. Skipping.")
            return

        user = User(email=DEMO_EMAIL, first_name="Demo", last_name="Owner")
        db.add(user)
        db.flush()

        triplex = Property(name="Triplex Rosemont", owner_id=user.id, current_value=650000)
        duplex = Property(name="Duplex Verdun", owner_id=user.id, current_value=480000)
        db.add_all([triplex, duplex])
        db.flush()

        db.add_all(
            [
                PropertyUnit(property_id=triplex.id, label="1", square_feet=950, rent_expected=1450),
                PropertyUnit(property_id=triplex.id, label="2", square_feet=950, rent_expected=1400),
                PropertyUnit(property_id=triplex.id, label="3", square_feet=1100, rent_expected=1650),
                PropertyUnit(property_id=duplex.id, label="A", square_feet=900, rent_expected=1300),
                PropertyUnit(property_id=duplex.id, label="B", square_feet=900, rent_expected=1250),
                build_mortgage(triplex.id, "Desjardins", 420000, 0.0489, date(2023, 6, 1)),
                build_mortgage(duplex.id, "National Bank", 310000, 0.0519, date(2024, 2, 1)),
                Revenue(property_id=triplex.id, label="Rent", amount=4500, frequency="monthly",
                        start_date=date(2023, 6, 1)),
                Revenue(property_id=duplex.id, label="Rent", amount=2550, frequency="monthly",
                        start_date=date(2024, 2, 1)),
                Expense(property_id=triplex.id, label="Municipal taxes", category="Taxes",
                        amount=450, frequency="monthly", start_date=date(2023, 6, 1)),
                Expense(property_id=triplex.id, label="Insurance", category="Insurance",
                        amount=2400, frequency="annual", start_date=date(2023, 6, 1)),
                Expense(property_id=duplex.id, label="Snow removal", category="Maintenance",
                        amount=75, frequency="weekly", start_date=date(2024, 12, 1),
                        end_date=date(2025, 3, 31)),
                DepreciationInfo(property_id=triplex.id, class_code="1", cca_rate=0.04,
                                 opening_ucc=480000, additions=0, dispositions=0),
            ]
        )

        print(f"Created demo user {user.email} (ID: {user.id})")
        print(f"  {triplex.name}: ${triplex.current_value:,.0f}")
        print(f"  {duplex.name}: ${duplex.current_value:,.0f}")


if __name__ == "__main__":
    main()
