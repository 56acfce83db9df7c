"""
Services package.

- credentials: user identity records, password hashing/verification
- authenticators: local and federated login behind one interface
- google_oauth: Google OAuth2 authorization-code client
- ledger: subscription entitlement record and payment history
- paypal: PayPal Orders v2 client
- payments: order create/capture flow and the capture-to-entitlement transition
- plans: static plan catalogue
- image_generation: premium image generation pass-through
"""
