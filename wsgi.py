# wsgi.py

import signal
import sys

from votebox import create_app
from votebox.database import close_db

app = create_app()


def _shutdown(signum, frame):
    close_db(app)
    sys.exit(0)


signal.signal(signal.SIGTERM, _shutdown)

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=3000)
