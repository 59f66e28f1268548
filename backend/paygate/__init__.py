"""PayGate: merchant payment gateway backend."""
