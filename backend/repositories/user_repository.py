"""
Repository for user operations.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, selectinload

from repositories.base import BaseRepository
from repositories.db_models import Role, User, UserRole


class UserRepository(BaseRepository[User]):
    """Repository for user data access."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def get_by_email_or_username(self, email: str, username: str) -> User | None:
        """
        Find a user clashing with either identifier.

        Args:
            email: Email to check
            username: Username to check

        Returns:
            First matching user, or None
        """
        return (
            self.db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )

    def search_query(
        self,
        search: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> Query[User]:
        """
        Build the admin user listing query.

        Args:
            search: Substring matched against username, email and display name
            role: Only users holding this role (USER matches everyone)
            is_active: Filter on the ban flag

        Returns:
            Query ordered by newest first
        """
        query = self.db.query(User).options(selectinload(User.role_rows))

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                    User.display_name.ilike(pattern),
                )
            )

        if role is not None and role != Role.USER:
            query = query.filter(User.role_rows.any(UserRole.role == role))

        if is_active is not None:
            query = query.filter(User.is_active == is_active)

        return query.order_by(User.created_at.desc(), User.id.desc())

    def set_roles(self, user: User, roles: set[Role]) -> None:
        """
        Replace the stored role rows of a user.

        USER is implicit and never stored.

        Args:
            user: User to update
            roles: Complete desired role set
        """
        wanted = {role for role in roles if role != Role.USER}
        user.role_rows = [row for row in user.role_rows if row.role in wanted]
        present = {row.role for row in user.role_rows}
        for role in wanted - present:
            user.role_rows.append(UserRole(role=role))
        self.db.flush()

    def count_active(self) -> int:
        return self.db.query(User).filter(User.is_active.is_(True)).count()

    def count_with_role(self, role: Role) -> int:
        return (
            self.db.query(UserRole.user_id)
            .filter(UserRole.role == role)
            .distinct()
            .count()
        )
