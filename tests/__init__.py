# TokoPOS Terminal Test Suite
#
# This package contains:
# - Cart, checkout and session tests (pytest)
# - API client tests (httpx.MockTransport)
# - End-to-end tests against the Flask backend (httpx.WSGITransport)
#
# Backend unit and route tests live in backend/tests.
