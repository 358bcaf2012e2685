"""
Investor notifications over WhatsApp (Fonnte) and e-mail (Resend).

Delivery is best effort: every failure is logged and swallowed.
"""
