"""Seed a first user, and optionally a first board, for the Kanban push API."""

from __future__ import annotations

import argparse
from getpass import getpass
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError

from kanban.application.use_cases.users import create_user
from kanban.infrastructure.database import SessionLocal, initialize_database
from kanban.infrastructure.repositories import ProjectMemberRepository


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Crea el primer usuario del tablero Kanban. Con --project también "
            "crea un proyecto del que será dueño, listo para recibir actividad."
        ),
    )
    parser.add_argument(
        "--username",
        default="admin",
        help="Usuario con el que se inicia sesión en /auth/token (admin si se omite)",
    )
    parser.add_argument(
        "--full-name",
        default="Administrador",
        help="Nombre que verán los demás miembros en notificaciones y actividad",
    )
    parser.add_argument("--email", default="admin@example.com", help="Correo único del usuario")
    parser.add_argument("--avatar", default=None, help="URL del avatar (opcional)")
    parser.add_argument(
        "--project",
        metavar="NOMBRE",
        default=None,
        help="Nombre de un proyecto inicial; el usuario queda como dueño",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Contraseña; si se omite se pide por consola sin mostrarla",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)

    password = args.password or getpass(f"Contraseña para {args.username}: ")
    if not password:
        raise SystemExit("La contraseña no puede estar vacía.")

    initialize_database()

    with SessionLocal() as session:
        try:
            user = create_user(
                session,
                username=args.username,
                full_name=args.full_name,
                email=args.email,
                password=password,
                avatar=args.avatar,
            )
            project_id = None
            if args.project:
                project_id = ProjectMemberRepository(session).create_project(
                    name=args.project, owner_id=user.id
                )
        except ValueError as exc:
            session.rollback()
            raise SystemExit(f"Usuario no creado: {exc}") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            raise SystemExit(f"La base de datos rechazó el alta: {exc}") from exc

    lines = [f"Usuario #{user.id} {user.username} <{user.email}> listo."]
    if project_id is not None:
        lines.append(f"Proyecto #{project_id} '{args.project}' creado con {user.username} como dueño.")
    lines.append("Inicie sesión en /auth/token y abra /notifications/stream para recibir eventos.")
    print("\n".join(lines))


if __name__ == "__main__":
    main()
