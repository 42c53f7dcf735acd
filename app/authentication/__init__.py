"""
Accounts for students, teachers and admins.

Email login with JWT tokens, role-specific profiles (teacher subjects,
rate, payout destination; student grade), language and push token
preferences used when notifying the user.
"""
