import httpx
import asyncio
import os
import sys

BASE_URL = os.getenv("BASE_URL", "http://localhost:3300")
KEY = "verify-secret"

async def run_verification() -> bool:
    print(f"🚀  Starting Verification against {BASE_URL}...\n")

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10.0) as client:
        # 1. Health Check
        print("1. [Health] Checking /health...")
        try:
            resp = await client.get("/health")
            if resp.status_code == 200 and resp.json() == {"status": "ok"}:
                print("   ✅  Health Check Passed")
            else:
                print(f"   ❌  Health Check Failed: {resp.text}")
                return False
        except httpx.HTTPError as e:
            print(f"   ❌  Connection Error: {e}")
            return False

        # 2. Create Link
        print("\n2. [API] Creating Link...")
        resp = await client.post("/api/links/create", json={"key": KEY, "title": "Verification"})
        if resp.status_code == 201:
            link_id = resp.json()["linkId"]
            print(f"   ✅  Created: {resp.json()['shareUrl']}")
        else:
            print(f"   ❌  Create Failed: {resp.status_code} {resp.text}")
            return False

        # 3. Send Message
        print("\n3. [API] Sending Message...")
        resp = await client.post(f"/api/messages/{link_id}/send", json={"content": "hello from verify"})
        if resp.status_code == 201:
            message_id = resp.json()["messageId"]
            print(f"   ✅  Sent as {resp.json()['anonymousSenderId']}")
        else:
            print(f"   ❌  Send Failed: {resp.status_code} {resp.text}")
            return False

        # 4. Read Messages
        print("\n4. [API] Reading Messages...")
        resp = await client.get(f"/api/messages/{link_id}", params={"key": KEY})
        if resp.status_code == 200 and resp.json()["totalMessages"] == 1:
            print("   ✅  Owner sees 1 message")
        else:
            print(f"   ❌  Read Failed: {resp.status_code} {resp.text}")

        resp = await client.get(f"/api/messages/{link_id}", params={"key": "wrong-key"})
        if resp.status_code == 401:
            print("   ✅  Wrong key rejected")
        else:
            print(f"   ❌  Wrong key accepted: {resp.status_code}")

        # 5. Toggle Visibility
        print("\n5. [API] Toggling Visibility...")
        resp = await client.post(f"/api/links/{link_id}/toggle-visibility", params={"key": KEY})
        blocked = await client.post(f"/api/messages/{link_id}/send", json={"content": "too late"})
        if resp.status_code == 200 and not resp.json()["isActive"] and blocked.status_code == 403:
            print("   ✅  Inactive link refuses messages")
        else:
            print(f"   ❌  Toggle Failed: {resp.status_code} / send {blocked.status_code}")

        # 6. Delete Message
        print("\n6. [API] Deleting Message...")
        resp = await client.delete(f"/api/messages/{message_id}", params={"key": KEY})
        if resp.status_code == 200:
            print("   ✅  Message deleted")
        else:
            print(f"   ❌  Delete Failed: {resp.status_code} {resp.text}")

        # 7. Metrics
        print("\n7. [Observability] Verifying Metrics...")
        resp = await client.get("/metrics")
        if resp.status_code == 200 and "messages_sent_total" in resp.text:
            print("   ✅  Metrics Endpoint Exposed")
        else:
            print(f"   ❌  Metrics Failed: {resp.status_code}")

    print("\n✨ Verification Complete!")
    return True

if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_verification()) else 1)
