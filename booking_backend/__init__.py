"""
Backend agendamentos (prenotazioni con provider).

Struttura:
- db.py            : engine e sessioni SQLAlchemy
- models.py        : modelli ORM (User, File, Appointment, Notification)
- repositories.py  : accesso ai dati per i servizi
- services.py      : logica di dominio (elenco, prenotazione, annullamento)
- notifications.py : notifiche al provider
- jobs.py          : coda job (ARQ) e worker.py per la mail di annullamento
- api_main.py      : API FastAPI
- cli.py           : operazioni da riga di comando
"""
