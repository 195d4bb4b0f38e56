import httpx
import asyncio
import sys

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

def check(ok: bool, passed: str, failed: str) -> bool:
    print(f"   ✅  {passed}" if ok else f"   ❌  {failed}")
    return ok

async def run_verification() -> bool:
    print(f"🚀  Starting Verification against {BASE_URL}...\n")

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=10.0) as client:
        print("1. [Health] Checking /health...")
        try:
            resp = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌  Connection Error: {e}")
            return False
        if not check(resp.status_code == 200, "Health Check Passed", f"Health Check Failed: {resp.text}"):
            return False

        code = "verify-test"
        long_url = "https://www.example.com"

        print("\n2. [API] Creating Short URL...")
        # Leftover from a previous run
        await client.delete(f"/urls/{code}")
        resp = await client.post("/urls", json={"originalUrl": long_url, "customCode": code})
        if not check(resp.status_code == 201, f"Created: {resp.json().get('shortUrl')}", f"Create Failed: {resp.status_code} {resp.text}"):
            return False

        print("\n3. [API] Verifying Conflict on Duplicate Code...")
        resp = await client.post("/urls", json={"originalUrl": long_url, "customCode": code})
        check(resp.status_code == 409, "Duplicate rejected with 409", f"Expected 409, got {resp.status_code}")

        print("\n4. [Redirect] Verifying Redirect...")
        resp = await client.get(f"/{code}", follow_redirects=False)
        check(
            resp.status_code == 302 and resp.headers.get("location") == long_url,
            f"Redirect Location matches: {resp.headers.get('location')}",
            f"Redirect Failed: {resp.status_code} {resp.headers.get('location')}",
        )

        print("\n5. [API] Verifying Click Stats...")
        resp = await client.get(f"/urls/{code}/stats")
        check(
            resp.status_code == 200 and resp.json().get("clickCount") == 1,
            "Click counted",
            f"Stats mismatch: {resp.status_code} {resp.text}",
        )

        print("\n6. [API] Toggling Inactive...")
        await client.patch(f"/urls/{code}/toggle")
        resp = await client.get(f"/{code}", follow_redirects=False)
        check(resp.status_code == 404, "Inactive URL no longer redirects", f"Expected 404, got {resp.status_code}")

        print("\n7. [API] Deleting...")
        resp = await client.delete(f"/urls/{code}")
        ok = check(resp.status_code == 204, "Deleted", f"Delete Failed: {resp.status_code}")
        resp = await client.get(f"/urls/{code}")
        ok = check(resp.status_code == 404, "Gone after delete", f"Still present: {resp.status_code}") and ok

    print("\n✨  Verification finished")
    return ok

if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_verification()) else 1)
