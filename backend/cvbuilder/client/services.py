"""Typed wrappers around the API endpoints."""

from .api import ApiClient, ApiError


def _data(body):
    return body.get("data") if isinstance(body, dict) else body


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def _store_token(self, body: dict) -> dict:
        if body and body.get("token"):
            self.api.token = body["token"]
        return body

    def login(self, email: str, password: str) -> dict:
        """Returns ``{token, user}`` and keeps the token for later calls."""
        return self._store_token(self.api.post("/auth/login", {"email": email, "password": password}))

    def register(self, name: str, email: str, password: str) -> dict:
        body = {"name": name, "email": email, "password": password}
        return self._store_token(self.api.post("/auth/register", body))

    def me(self) -> dict:
        return self.api.get("/auth/me")["user"]

    def forgot_password(self, email: str) -> dict:
        return self.api.post("/auth/forgot-password", {"email": email})

    def reset_password(self, token: str, password: str) -> dict:
        return self._store_token(self.api.post("/auth/reset-password", {"token": token, "password": password}))

    def logout(self) -> None:
        self.api.token = None


class CVService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_cvs(self) -> list[dict]:
        return _data(self.api.get("/cv"))

    def get(self, cv_id: str) -> dict:
        return _data(self.api.get(f"/cv/{cv_id}"))

    def create(self, cv: dict) -> dict:
        return _data(self.api.post("/cv", cv))

    def update(self, cv_id: str, changes: dict) -> dict:
        return _data(self.api.put(f"/cv/{cv_id}", changes))

    def delete(self, cv_id: str) -> dict:
        return self.api.delete(f"/cv/{cv_id}")

    def analyze(self, cv_id: str, job_description: str, target_job_title: str | None = None,
                target_company: str | None = None) -> dict:
        body = {"jobDescription": job_description}
        if target_job_title:
            body["targetJobTitle"] = target_job_title
        if target_company:
            body["targetCompany"] = target_company
        return _data(self.api.post(f"/cv/{cv_id}/analyze", body))

    def download_pdf(self, cv_id: str) -> bytes:
        """Server-rendered PDF bytes. Non-PDF answers raise ApiError."""
        response = self.api.send("GET", f"/cv/{cv_id}/download", headers={"Accept": "application/pdf"})
        content_type = response.headers.get("content-type", "")
        if "application/pdf" not in content_type:
            raise ApiError(f"Expected a PDF but got '{content_type or 'no content type'}'", status=response.status_code)
        return response.content

    def preview(self, cv_id: str, template: str | None = None) -> str:
        params = {"template": template} if template else None
        return self.api.send("GET", f"/cv/{cv_id}/preview", params=params, headers={"Accept": "text/html"}).text


class UserService:
    def __init__(self, api: ApiClient):
        self.api = api

    def get_profile(self) -> dict:
        return _data(self.api.get("/users/me/profile"))

    def update_profile(self, name: str | None = None, email: str | None = None) -> dict:
        body = {k: v for k, v in (("name", name), ("email", email)) if v}
        return _data(self.api.put("/users/me/profile", body))

    def change_password(self, current_password: str, new_password: str) -> dict:
        body = {"currentPassword": current_password, "newPassword": new_password}
        return self.api.put("/users/me/password", body)

    def delete_account(self) -> dict:
        body = self.api.delete("/users/me")
        self.api.token = None
        return body


class SubscriptionService:
    def __init__(self, api: ApiClient):
        self.api = api

    def get(self) -> dict:
        return _data(self.api.get("/subscriptions"))

    def subscribe(self, plan: str) -> dict:
        return self.api.post("/subscriptions/subscribe", {"plan": plan})

    def cancel(self) -> dict:
        return self.api.post("/subscriptions/cancel")
