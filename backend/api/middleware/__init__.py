"""Request guards: authentication and entitlement checks."""
