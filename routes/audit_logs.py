from flask import Blueprint, jsonify, request

from models.user import Role
from security.policy import SURFACES
from security.rbac import require_roles

audit_bp = Blueprint("audit", __name__, url_prefix="/super-admin")


@audit_bp.get("/audit-logs")
@require_roles("admin", Role.SUPERADMIN.value)
def list_audit_logs():
    surface = (request.args.get("surface") or "admin").strip().lower()
    policy = SURFACES.get(surface)
    if policy is None:
        return jsonify(error="Unknown surface", surfaces=sorted(SURFACES)), 400
    model = policy.audit_model

    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    action = request.args.get("action")
    user_id = request.args.get("user_id", type=int)

    q = model.query
    if action:
        q = q.filter(model.action == action.strip().upper())
    if user_id is not None:
        q = q.filter(model.user_id == user_id)

    rows = q.order_by(model.timestamp.desc(), model.id.desc()).limit(limit).all()

    return jsonify([
        {
            "id": r.id,
            "surface": policy.name,
            "user_id": r.user_id,
            "action": r.action,
            "ip": r.ip,
            "user_agent": r.user_agent,
            "timestamp": r.timestamp.isoformat() if r.timestamp else None,
        }
        for r in rows
    ]), 200
