import uuid

PASSWORD = "password123"

def uniq_email(prefix: str) -> str:
    return f"{prefix}+{uuid.uuid4().hex[:10]}@example.com"

def register(client, email: str, *, role: str = "user", name: str = "Test User", password: str = PASSWORD) -> str:
    r = client.post("/auth/sign-up", json={"email": email, "password": password, "full_name": name, "role": role})
    assert r.status_code == 200, r.text
    token = r.json()["token"]
    assert token, "expected confirmation token outside prod"

    r = client.post("/auth/confirm", json={"token": token})
    assert r.status_code == 200, r.text

    r = client.post("/auth/sign-in", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    # requests in tests say who they are explicitly
    client.cookies.clear()
    return r.json()["access_token"]

def auth(jwt: str) -> dict[str, str]:
    return {"authorization": f"bearer {jwt}"}
