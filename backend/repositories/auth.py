import secrets
from database import new_session
from models.auth import UserSessionOrm
from models.profile import ProfileOrm
from sqlalchemy import select
from datetime import timedelta
from config import SESSION_EXPIRE_DAYS
from utils.dates import utcnow, as_utc




class UserRepository:
    @classmethod
    async def create_profile(cls, name: str, profile_type: str, email: str | None = None, profile_id: str | None = None):
        """Criar perfil (voluntário ou organização)"""
        async with new_session() as session:
            profile = ProfileOrm(name=name, type=profile_type, email=email)
            if profile_id:
                profile.id = profile_id
            session.add(profile)
            await session.commit()
            await session.refresh(profile)
            return profile
    
    
    @classmethod
    async def get_user_by_id(cls, user_id: str):
        """Obter perfil por ID"""
        async with new_session() as session:
            query = select(ProfileOrm).where(ProfileOrm.id == user_id)
            result = await session.execute(query)
            return result.scalars().first()
    
    
    @classmethod
    async def get_user_by_session_token(cls, session_token: str):
        """Obter perfil pelo token de sessão"""
        async with new_session() as session:
            query = select(UserSessionOrm).where(UserSessionOrm.session_token == session_token)
            result = await session.execute(query)
            session_obj = result.scalars().first()
            
            if not session_obj or as_utc(session_obj.expires_at) < utcnow():
                return None
            
            return await cls.get_user_by_id(session_obj.user_id)
    
    
    @classmethod
    async def create_user_session(cls, user_id: str):
        """Criar sessão para o perfil"""
        async with new_session() as session:
            session_token = secrets.token_urlsafe(32)
            expires_at = utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)
            
            session_obj = UserSessionOrm(
                user_id=user_id,
                session_token=session_token,
                expires_at=expires_at
            )
            session.add(session_obj)
            await session.commit()
            return session_token
