"""Client repository - Database operations for clients"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Client

VIP_SPEND_THRESHOLD = 500
NEW_CLIENT_DAYS = 30
INACTIVE_DAYS = 90


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, tenant_id: str) -> list[Client]:
        """Get all clients for a tenant, newest first"""
        return (
            db.query(Client)
            .filter(Client.tenant_id == tenant_id)
            .order_by(Client.created_at.desc())
            .all()
        )

    @staticmethod
    def get_client_by_id(db: Session, client_id: str, tenant_id: str) -> Optional[Client]:
        """Get a specific client by ID"""
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.tenant_id == tenant_id)
            .first()
        )

    @staticmethod
    def search_clients(db: Session, tenant_id: str, search: str) -> list[Client]:
        """Case-insensitive search on first name, last name and email"""
        search_term = f"%{search.lower()}%"
        return (
            db.query(Client)
            .filter(
                Client.tenant_id == tenant_id,
                or_(
                    Client.first_name.ilike(search_term),
                    Client.last_name.ilike(search_term),
                    Client.email.ilike(search_term),
                ),
            )
            .order_by(Client.created_at.desc())
            .all()
        )

    @staticmethod
    def get_clients_by_segment(db: Session, tenant_id: str, segment: str) -> list[Client]:
        """Clients in a marketing segment: vip, new or inactive"""
        query = db.query(Client).filter(Client.tenant_id == tenant_id)
        now = datetime.utcnow()

        if segment == "vip":
            query = query.filter(Client.total_spent >= VIP_SPEND_THRESHOLD)
        elif segment == "new":
            query = query.filter(Client.created_at >= now - timedelta(days=NEW_CLIENT_DAYS))
        elif segment == "inactive":
            query = query.filter(
                or_(
                    Client.last_visit_date.is_(None),
                    Client.last_visit_date < now - timedelta(days=INACTIVE_DAYS),
                )
            )

        return query.order_by(Client.created_at.desc()).all()

    @staticmethod
    def create_client(db: Session, tenant_id: str, **client_data) -> Client:
        """Create a new client"""
        client = Client(tenant_id=tenant_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        """Delete a client"""
        db.delete(client)
        db.commit()
