#!/usr/bin/env python3
"""
Script para promover um perfil a admin no Hackteam.

Admins podem excluir contas de outros usuários.

Uso:
    python scripts/promote_admin.py <username>
    python scripts/promote_admin.py <username> --role moderator
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Adiciona o diretório api ao path para importar o pacote hackteam
sys.path.insert(0, str(Path(__file__).parent.parent))

from hackteam.db.session import SessionLocal
from hackteam.services.identity import get_profile_by_username

ROLES = ("user", "moderator", "admin")


async def promote(username: str, role: str, assume_yes: bool) -> int:
    async with SessionLocal() as db:
        profile = await get_profile_by_username(db, username)
        if profile is None:
            print(f"❌ Perfil @{username} não encontrado")
            return 1

        if profile.role == role:
            print(f"⚠️  @{username} já tem o papel {role}")
            return 0

        print(f"Você está prestes a mudar @{username} ({profile.display_name}) de {profile.role} para {role}.")
        if not assume_yes:
            confirm = input("Confirmar? (s/N): ").strip().lower()
            if confirm != "s":
                print("❌ Operação cancelada")
                return 1

        profile.role = role
        await db.commit()

    print(f"✅ @{username} agora é {role}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Altera o papel de um perfil.")
    parser.add_argument("username")
    parser.add_argument("--role", default="admin", choices=ROLES)
    parser.add_argument("-y", "--yes", action="store_true", help="Não pede confirmação.")
    args = parser.parse_args()
    sys.exit(asyncio.run(promote(args.username, args.role, args.yes)))


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\n❌ Operação cancelada pelo usuário")
        sys.exit(1)
