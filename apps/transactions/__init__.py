"""
Transactions App - Buy, Sell and Profit Sharing

This app tracks each buy-then-sell cycle of a unit: the purchase, the
operational costs paid by the investor or the manager, the sale, the
profit split between them and the payouts made to the investor.

Key Features:
- One in-process transaction per unit, enforced by a partial unique constraint
- Capital resolution with optional investor/manager overrides
- Net margin split with cent-exact residual for the manager
- Payment reconciliation with a small tolerance for rounding
- Costs frozen once a transaction is completed

Architecture:
- Models: Transaction, Cost, ProfitSharing, PaymentHistory
- Services: calculations, lifecycle, payments, costs, codes
- Views: RESTful API with a ViewSet and nested actions
- Exceptions: Domain exception hierarchy mapped to 400/404/409
"""
