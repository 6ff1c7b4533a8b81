"""Inline landing page with a minimal pairing form."""

LANDING_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>WhatsApp Pairing</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 280px; }
      button { padding: 0.4rem 0.8rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; white-space: pre-wrap; }
      #code { font-size: 2rem; letter-spacing: 0.2rem; }
    </style>
  </head>
  <body>
    <h1>WhatsApp Pairing</h1>
    <div class="row">
      <label>Phone number with country code</label><br />
      <input id="phone" type="tel" placeholder="e.g. 15551234567" />
      <button onclick="pair()">Get code</button>
    </div>
    <div id="code"></div>
    <pre id="output">Ready.</pre>
    <script>
      let timer = null;

      async function pair() {
        const output = document.getElementById('output');
        output.textContent = 'Requesting code...';
        const res = await fetch('/api/pair', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ phone: document.getElementById('phone').value })
        });
        const data = await res.json();
        if (!data.success) {
          output.textContent = 'Error: ' + data.message;
          return;
        }
        document.getElementById('code').textContent = data.code;
        output.textContent = 'Enter the code in WhatsApp > Linked devices.';
        clearInterval(timer);
        timer = setInterval(() => poll(data.sessionId), 3000);
      }

      async function poll(sessionId) {
        const output = document.getElementById('output');
        const res = await fetch('/api/status/' + sessionId);
        const data = await res.json();
        if (data.status === 'not_found') {
          clearInterval(timer);
          output.textContent = 'Session expired. Request a new code.';
          return;
        }
        if (data.status !== 'connected') {
          return;
        }
        const session = await fetch('/api/session/' + sessionId);
        if (!session.ok) {
          return;
        }
        clearInterval(timer);
        const payload = await session.json();
        output.textContent = payload.sessionString;
      }
    </script>
  </body>
</html>
"""
