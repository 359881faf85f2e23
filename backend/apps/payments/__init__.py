"""
Payments app for registration fees.
Handles gateway orders and signature checks, manual UPI proof and the
admin approval that confirms a registration.
"""
