from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse

DEMO_SECURITY_CODE = "123456"


class ProviderState:
    """In-memory provider data; tests call reset() and toggle failing"""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.credentials: Dict[str, str] = {"clientA": "secretA", "clientB": "secretB"}
        self.token_lifetime = 3600
        self.tokens: Dict[str, str] = {}
        self.profiles: Dict[str, Dict[str, Any]] = {
            "clientA": {"id": "u-a", "email": "a@example.com", "twoFaType": 1},
            "clientB": {"id": "u-b", "email": "b@example.com", "twoFaType": 2},
        }
        self.accounts: Dict[str, List[Dict[str, Any]]] = {
            "clientA": [{"id": "acc1", "accountNumber": "ES001", "currency": "USD", "balance": 10000, "pendingIn": 0, "pendingOut": 0, "isDefault": True}],
            "clientB": [{"id": "acc2", "accountNumber": "ES002", "currency": "EUR", "balance": 250075, "pendingIn": 1000, "pendingOut": 500, "isDefault": True}],
        }
        self.beneficiaries: Dict[str, List[Dict[str, Any]]] = {
            "clientA": [
                {"id": "ben1", "firstName": "Ana", "lastName": "Diaz", "accountNumber": "CU001", "countryDestination": {"code": "CU", "name": "Cuba"}, "type": 1},
            ],
            "clientB": [],
        }
        self.movements: Dict[str, List[Dict[str, Any]]] = {
            "acc1": [{"id": "mv1", "amount": 2500, "balanceBefore": 12500, "balanceAfter": 10000}],
        }
        self.failing: set[str] = set()
        self.sms_sent: List[str] = []
        self.next_id = 100


state = ProviderState()
router = APIRouter(prefix="/api/v3")


def _client_for(authorization: Optional[str]) -> str:
    token = (authorization or "").removeprefix("Bearer ").strip()
    if token not in state.tokens:
        raise HTTPException(status_code=401, detail="invalid token")
    return state.tokens[token]


def _maybe_fail(resource: str) -> None:
    if resource in state.failing:
        raise HTTPException(status_code=503, detail=f"{resource} unavailable")


def _error(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": {"code": code, "message": message}})


@router.post("/access/token")
def issue_token(body: Dict[str, Any] = Body(...)):
    _maybe_fail("token")
    client_id = body.get("client_id")
    if state.credentials.get(client_id) != body.get("client_secret"):
        return _error(401, "INVALID_CREDENTIALS", "invalid client credentials")
    token = f"tok-{client_id}-{len(state.tokens) + 1}"
    state.tokens[token] = client_id
    return {"access_token": token, "expires_in": state.token_lifetime, "token_type": "Bearer"}


@router.get("/users/profile")
def get_profile(authorization: Optional[str] = Header(None)):
    _maybe_fail("profile")
    return state.profiles[_client_for(authorization)]


@router.get("/accounts/")
def get_accounts(authorization: Optional[str] = Header(None)):
    _maybe_fail("accounts")
    return state.accounts[_client_for(authorization)]


@router.get("/accounts/{account_id}/movements")
def get_movements(account_id: str, offset: int = 0, limit: int = 20, authorization: Optional[str] = Header(None)):
    _client_for(authorization)
    rows = state.movements.get(account_id, [])
    return {"count": len(rows), "rows": rows[offset:offset + limit]}


@router.get("/deposit_accounts/")
def get_beneficiaries(offset: int = 0, limit: int = 20, authorization: Optional[str] = Header(None)):
    _maybe_fail("beneficiaries")
    rows = state.beneficiaries[_client_for(authorization)]
    return {"count": len(rows), "rows": rows[offset:offset + limit]}


@router.post("/deposit_accounts")
def create_beneficiary(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    client_id = _client_for(authorization)
    if not body.get("accountNumber"):
        return _error(422, "VALIDATION_ERROR", "accountNumber is required")
    existing = state.beneficiaries[client_id]
    if any(b["accountNumber"] == body["accountNumber"] for b in existing):
        return _error(409, "DUPLICATED", "beneficiary already exists")
    state.next_id += 1
    beneficiary = {**body, "id": f"ben{state.next_id}", "state": "active"}
    existing.append(beneficiary)
    return beneficiary


@router.post("/deposit_accounts/validate_account_number")
def validate_account_number(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    _client_for(authorization)
    return {"valid": str(body.get("accountNumber", "")).isalnum()}


@router.post("/deposit_accounts/Validate_Swift")
def validate_swift(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    _client_for(authorization)
    return {"valid": len(str(body.get("swift", ""))) in (8, 11)}


def _find_transfer_parties(client_id: str, body: Dict[str, Any]):
    account = next((a for a in state.accounts[client_id] if a["id"] == body.get("accountId")), None)
    beneficiary = next((b for b in state.beneficiaries[client_id] if b["id"] == body.get("depositaccountId")), None)
    return account, beneficiary


@router.post("/booking/payout/simulate")
def simulate(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    client_id = _client_for(authorization)
    account, beneficiary = _find_transfer_parties(client_id, body)
    if beneficiary is None:
        return _error(404, "BENEFICIARY_NOT_FOUND", "beneficiary not found")
    amount = int(body["amountToPay"])
    return {
        "amountToPay": amount,
        "amountToGet": amount,
        "amountToGetInEUR": amount,
        "fees": 0,
        "accountLeftBalance": account["balance"] - amount if account else 0,
        "currency": body.get("currency"),
        "twoFaRequired": True,
    }


@router.post("/booking/payout")
def execute(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    client_id = _client_for(authorization)
    if body.get("securityCode") != DEMO_SECURITY_CODE:
        return _error(400, "INVALID_SECURITY_CODE", "invalid security code")
    account, beneficiary = _find_transfer_parties(client_id, body)
    if beneficiary is None:
        return _error(404, "BENEFICIARY_NOT_FOUND", "beneficiary not found")
    amount = int(body["amount"])
    if account is None or account["balance"] < amount:
        return _error(400, "INSUFFICIENT_FUNDS", "insufficient funds")
    account["balance"] -= amount
    state.next_id += 1
    return {"id": f"bk{state.next_id}", "state": "processing", "amount": amount, "destinationAmount": amount}


@router.post("/users/sendSecurityCode")
def send_security_code(body: Dict[str, Any] = Body(...), authorization: Optional[str] = Header(None)):
    _client_for(authorization)
    state.sms_sent.append(body.get("phoneNumber"))
    return {"sent": True}


app = FastAPI(title="Mock Wallet Provider", version="1.0.0")


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(router)
