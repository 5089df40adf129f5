"""Payments app package.

Mobile-money (M-Pesa style) payments for bookings. A payment is a
``Transaction`` that starts ``pending`` when the customer initiates it and
is settled later, either by a status poll, by the provider webhook or by
the periodic reconciliation task. Settlement flips the transaction to
``completed`` and the booking to paid and ``confirmed`` in one database
transaction.
"""
