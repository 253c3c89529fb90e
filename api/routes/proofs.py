"""
Module 07 - Proof Verification Route

Offline check that a proof folds a leaf to a root. No database access.
"""

from fastapi import APIRouter

from api.errors import InvalidRequestError
from api.models.requests import ProofVerifyRequestBody
from api.models.responses import ProofVerifyResponse
from core.merkle import MerkleVerifier


router = APIRouter(prefix="/proofs", tags=["proofs"])


@router.post("/verify", response_model=ProofVerifyResponse)
async def verify_proof(body: ProofVerifyRequestBody) -> ProofVerifyResponse:
    """
    Verify a Merkle inclusion proof.

    When ``leaf`` is omitted it is derived from ``walletAddress`` and
    ``amountBaseUnits`` with the canonical leaf format.
    """
    try:
        leaf, ok = MerkleVerifier.check_claim(
            body.proof,
            body.root,
            leaf=body.leaf,
            wallet_address=body.wallet_address,
            amount_base_units=body.amount_base_units,
        )
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(str(e))

    return ProofVerifyResponse(ok=ok, leaf=leaf, root=body.root)
