# backend/routes/admin.py
import uuid
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from pydantic import BaseModel

from database import get_db
from models.users import User, ROLE_ADMIN
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log
from utils.errors import Conflict
from schemas.user import RoleUpdate, UserResponse

router = APIRouter(tags=["Admin"])

# Schema for paginated user list response
class PaginatedUsersResponse(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by e-mail"),
    last_name: Optional[str] = Query(None, description="Search by last name"),
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["email", "role", "first_name", "last_name"] = "email",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    query = db.query(User)

    # Filter by email
    if q:
        query = query.filter(User.email.ilike(f"%{q.lower()}%"))

    # Filter by role
    if role:
        query = query.filter(User.role.ilike(role))

    # Filter by last name
    if last_name:
        query = query.filter(User.last_name.ilike(f"%{last_name}%"))

    # Apply sorting based on selected field and order
    sort_map = {
        "email": User.email,
        "role": User.role,
        "first_name": User.first_name,
        "last_name": User.last_name,
    }
    col = sort_map.get(sort_by, User.email)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Update user role, e.g. onboard a chef (Admin only)
@router.put("/users/{user_id}/role")
def update_user_role(
    user_id: uuid.UUID,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    previous_role = user.role
    user.role = new_role.role
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_ROLE_CHANGE", resource="users",
              ip=request.client.host if request.client else None,
              meta={"target_user_id": user.id, "from": previous_role, "to": user.role})

    return {"message": f"User {user.email} role updated to {user.role}", "id": user.id, "role": user.role}


# Delete a user account (Admin only)
@router.delete("/users/{user_id}")
def delete_user(
    user_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required(ROLE_ADMIN)),
):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Prevent self-deletion
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    email = user.email
    db.delete(user)
    try:
        db.commit()
    except IntegrityError:
        # Still referenced by orders, dishes or cart lines
        db.rollback()
        raise Conflict(f"User {email} still owns data and cannot be deleted")

    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=request.client.host if request.client else None, meta={"email": email})

    return {"message": f"User {email} has been deleted"}
