import logging
from typing import Dict, List

from sqlmodel import Session, select

from jari_erp.config import settings
from jari_erp.db import transaction
from jari_erp.errors import InsufficientStock, InvalidInput, NotFound
from jari_erp.models import Machine, MachineStatus, MachineType
from jari_erp.services import inventory

logger = logging.getLogger(__name__)


def consumption_for(machine_type: MachineType) -> List[Dict[str, float]]:
    return settings.MACHINE_CONSUMPTION.get(machine_type.value, [])


def list_machines(session: Session) -> List[Machine]:
    return session.exec(select(Machine).order_by(Machine.id)).all()


def get_machine(session: Session, machine_id: int) -> Machine:
    machine = session.get(Machine, machine_id)
    if not machine:
        raise NotFound("Machine", machine_id)
    return machine


def add_machine(session: Session, machine: Machine) -> Machine:
    with transaction(session):
        exists = session.exec(select(Machine).where(Machine.name == machine.name)).first()
        if exists:
            raise InvalidInput(f"Machine {machine.name} already exists")
        # Inventory is only consumed through a transition.
        if machine.status == MachineStatus.RUNNING:
            machine.efficiency = machine.efficiency or settings.NOMINAL_EFFICIENCY
        else:
            machine.efficiency = 0
        session.add(machine)
    session.refresh(machine)
    logger.info("Added machine %s (%s)", machine.name, machine.machine_type.value)
    return machine


def transition(session: Session, machine_id: int, status: MachineStatus) -> Machine:
    """Move a machine to ``status``.

    Starting a stopped or maintenance machine consumes the raw material
    listed for its type. Every material is checked before anything is
    debited, so a shortage leaves both the machine and the stock untouched.
    """
    with transaction(session):
        machine = session.exec(
            select(Machine).where(Machine.id == machine_id).with_for_update()
        ).first()
        if not machine:
            raise NotFound("Machine", machine_id)

        if machine.status == status:
            return machine

        if status == MachineStatus.RUNNING:
            rates = consumption_for(machine.machine_type)
            for rate in rates:
                on_hand = inventory.available(session, rate["material_key"])
                if on_hand < rate["amount_per_start"]:
                    logger.warning(
                        "Start of %s blocked: %s required %s, available %s",
                        machine.name, rate["material_key"], rate["amount_per_start"], on_hand,
                    )
                    raise InsufficientStock(rate["material_key"], rate["amount_per_start"], on_hand)
            for rate in rates:
                inventory.debit(
                    session,
                    rate["material_key"],
                    rate["amount_per_start"],
                    ref_type="MACHINE_START",
                    ref_id=machine.id,
                )
            machine.efficiency = settings.NOMINAL_EFFICIENCY
        else:
            machine.efficiency = 0

        previous = machine.status
        machine.status = status
        session.add(machine)
    session.refresh(machine)
    logger.info("Machine %s: %s -> %s", machine.name, previous.value, status.value)
    return machine
