"""Drive a running server through order -> payment -> status polling.

python scripts/e2e_checkout.py [upi|card]
"""
import os
import sys
import time

import requests

BASE = os.getenv('GATEWAY_BASE_URL', 'http://127.0.0.1:8000')
API = f"{BASE}/api/v1"
POLL_TIMEOUT = float(os.getenv('E2E_POLL_TIMEOUT', '15'))

method = sys.argv[1] if len(sys.argv) > 1 else 'upi'

print('Fetching test merchant...')
r = requests.get(f"{API}/test/merchant")
print('Status:', r.status_code, 'Body:', r.text)
r.raise_for_status()

login = requests.post(f"{API}/merchant/login", json={"email": r.json()["email"]})
login.raise_for_status()
creds = login.json()
headers = {"X-Api-Key": creds["api_key"], "X-Api-Secret": creds["api_secret"]}

print('Creating order...')
order = requests.post(f"{API}/orders", json={"amount": 50000, "receipt": "e2e_receipt"}, headers=headers)
print('Status:', order.status_code, 'Body:', order.text)
order.raise_for_status()
order_id = order.json()["id"]

payload = {"order_id": order_id, "method": method}
if method == 'upi':
    payload["vpa"] = "e2e@okbank"
else:
    payload["card"] = {
        "number": "4111 1111 1111 1111",
        "expiry_month": "12",
        "expiry_year": str(time.gmtime().tm_year + 2),
        "cvv": "123",
        "holder_name": "E2E Tester",
    }

print('Submitting payment via checkout endpoint...')
payment = requests.post(f"{API}/payments/public", json=payload)
print('Status:', payment.status_code, 'Body:', payment.text)
payment.raise_for_status()
payment_id = payment.json()["id"]

deadline = time.time() + POLL_TIMEOUT
status = payment.json()["status"]
while status == 'processing' and time.time() < deadline:
    time.sleep(1)
    status = requests.get(f"{API}/payments/{payment_id}/public").json()["status"]
    print('  polled status:', status)

print('Final payment status:', status)
print('Order status:', requests.get(f"{API}/orders/{order_id}/public").json()["status"])
sys.exit(0 if status in ('success', 'failed') else 1)
