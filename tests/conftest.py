"""Shared receipt fixtures."""

import pytest

SUF_URL = "https://suf.purs.gov.rs/v/?vl=A0FCQzEyMzQ1Njc4OUFCQ0RF"

IPS_PAYLOAD = (
    "K:PR|V:01|C:1|R:200220618010100048|N:JKP INFOSTAN TEHNOLOGIJE"
    "|I:RSD4142,74|SF:122|S:OBJEDINJENA NAPLATA|RO:11800577342080-25127-1"
)

JOURNAL_TEXT = """\
============ ФИСКАЛНИ РАЧУН ============
106884584
LC WAIKIKI Retail RS d.o.o.
1234567-LC Waikiki Ušće
Булевар Михајла Пупина 4
Београд
Касир:                          Marko
ЕСИР број:                    123/1.0
-------------ПРОМЕТ ПРОДАЈА-------------
Артикли
========================================
Назив   Цена         Кол.         Укупно
Мајица (Ком)
     999,00          2        1.998,00
Чарапе (Ком)
     186,00          1          186,00
----------------------------------------
Укупан износ:                   2.184,00
Картица:                        2.184,00
========================================
Ознака       Име      Стопа        Порез
Ђ           О-ПДВ   20,00%       364,00
----------------------------------------
Укупан износ пореза:              364,00
========================================
ПФР време:          17.1.2026. 13:56:17
ПФР број рачуна: AB12CD34-AB12CD34-1234
Бројач рачуна:            1234/5678ПП
========================================
======== КРАЈ ФИСКАЛНОГ РАЧУНА =========
"""

ITEMS_HTML = """\
<html><body>
<a href="#collapse-specs">Спецификација рачуна</a>
<div id="collapse-specs" class="collapse show">
<table class="table">
<thead>
<tr><th>Назив</th><th>Јединична цена</th><th>Количина</th><th>Укупна цена</th></tr>
</thead>
<tbody>
<tr><td>Мајица (Ком)</td><td>999,00</td><td>2</td><td>1.998,00</td></tr>
<tr><td>Банане /KG</td><td>149,99</td><td>0,345</td><td>51,75</td></tr>
<tr><td>Broken</td><td>x</td><td>abc</td><td>1,00</td></tr>
<tr><td>Short</td></tr>
</tbody>
</table>
</div>
</body></html>
"""


@pytest.fixture
def journal_text():
    return JOURNAL_TEXT


@pytest.fixture
def items_html():
    return ITEMS_HTML
