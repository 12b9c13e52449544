"""
Bank token service.

Issues and verifies short-lived, asymmetrically signed bearer tokens used to
authenticate the bank against the partner API.
"""
